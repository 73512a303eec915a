"""Composite relevance score for one place in one section.

Every signal is a fit value in [0, 1]. The section decides how much each one
counts; the weighted sum is normalized by the total weight and scaled to
0-100. Missing optional data (rating, price level, tags, live weather) maps to
a fixed neutral value instead of raising.
"""

from __future__ import annotations

import math
import urllib.parse
from typing import Dict

from models import (
    RAIN_FRIENDLY,
    THIS_EVENING,
    CandidatePlace,
    PlaceScore,
    ScoreContext,
    ScoredPlace,
    WeatherContext,
)
from services.preferences import budget_fit, preference_boost
from services.time_of_day import time_of_day_fit
from services.weather import NEUTRAL_WEATHER_FIT, categorical_weather_fit, is_indoor, weather_fit
from utils import clamp01, haversine_km, is_finite_number

HARD_CAP_KM = {"walk": 7.5, "car": 25.0, "boat": 25.0}
MOBILITY_MULTIPLIER = {"walk": 1.1, "car": 0.85, "boat": 0.95}

NEUTRAL_RATING = 0.4
OPEN_SCORE = 1.0
NOT_OPEN_SCORE = 0.3
FEATURED_BOOST = 20

NEARBY_KM = 1.5
HIGH_RATING = 4.5
GOOD_WEATHER = 0.85

RAINY_WEIGHTS = {"dist": 1.2, "open": 2.0, "weather": 4.0, "rating": 1.2, "pref": 1.5, "budget": 1.0, "time": 1.2}
EVENING_WEIGHTS = {"dist": 1.5, "open": 2.5, "weather": 1.2, "rating": 1.3, "pref": 1.6, "budget": 1.0, "time": 2.0}
DEFAULT_WEIGHTS = {"dist": 2.0, "open": 3.0, "weather": 2.0, "rating": 1.5, "pref": 1.8, "budget": 1.0, "time": 1.5}

LIVE_VIBE_WEIGHTS = {"time": 2.5, "weather": 2.5, "open": 2.0, "pop": 2.0, "dist": 1.5}

CLOSED = "closed"
LIVE_VIBE_BANDS = ((90, "electric"), (80, "buzzing"), (65, "lively"), (50, "calm"))


def section_weights(section: str) -> Dict[str, float]:
    if section == RAIN_FRIENDLY:
        return RAINY_WEIGHTS
    if section == THIS_EVENING:
        return EVENING_WEIGHTS
    return DEFAULT_WEIGHTS


def _weighted(fits: Dict[str, float], weights: Dict[str, float]) -> int:
    raw = sum(weights[k] * fits[k] for k in weights)
    total = sum(weights.values())
    return max(0, min(100, int(round(raw / total * 100))))


def distance_score(km: float, mobility: str) -> float:
    if km > HARD_CAP_KM.get(mobility, HARD_CAP_KM["walk"]):
        return 0.0
    return clamp01(clamp01(1 - km / 10) * MOBILITY_MULTIPLIER.get(mobility, 1.0))


def rating_score(rating, total) -> float:
    if not rating or not is_finite_number(rating) or not is_finite_number(total) or total <= 0:
        return NEUTRAL_RATING
    return clamp01((rating / 5) * math.log10(total + 1))


def popularity_score(total) -> float:
    if not is_finite_number(total) or total <= 0:
        return 0.0
    return clamp01(math.log10(total + 1) / 3)


def resolve_weather_fit(indoor: bool, weather: WeatherContext) -> float:
    if weather.live is not None:
        return weather_fit(indoor, weather.live)
    if weather.source == "override":
        return categorical_weather_fit(indoor, weather.label)
    return NEUTRAL_WEATHER_FIT


def live_vibe_state(index: int) -> str:
    for threshold, label in LIVE_VIBE_BANDS:
        if index >= threshold:
            return label
    return "quiet"


def reason_tokens(
    *,
    open_now,
    km: float,
    indoor: bool,
    wfit: float,
    rating,
    vibe: str,
    featured: bool,
) -> list[str]:
    tokens: list[str] = []
    if featured:
        tokens.append("featured")
    if open_now:
        tokens.append("openNow")
    if wfit > GOOD_WEATHER:
        tokens.append("goodWeatherIndoor" if indoor else "perfectWeather")
    if km < NEARBY_KM:
        tokens.append("nearby")
    if (rating or 0) >= HIGH_RATING:
        tokens.append("highRated")
    tokens.append(f"vibe:{vibe}")
    return tokens


def score_place(place: CandidatePlace, ctx: ScoreContext, section: str) -> PlaceScore:
    prefs = ctx.prefs
    km = haversine_km(ctx.origin, place.location)

    indoor = is_indoor(place.types)
    fits = {
        "dist": distance_score(km, prefs.mobility),
        "open": OPEN_SCORE if place.open_now is True else NOT_OPEN_SCORE,
        "weather": resolve_weather_fit(indoor, ctx.weather),
        "rating": rating_score(place.rating, place.user_ratings_total),
        "pref": preference_boost(place.types, prefs.vibe, prefs.audience),
        "budget": budget_fit(place.price_level, prefs.budget),
        "time": time_of_day_fit(ctx.now, place.types),
    }

    score = _weighted(fits, section_weights(section))

    featured = place.place_id in ctx.featured_ids
    if featured:
        score = min(100, score + FEATURED_BOOST)

    # a known-closed place has no live energy, whatever else it scores
    if place.open_now is False:
        vibe_index, vibe_state = 0, CLOSED
    else:
        vibe_fits = {
            "time": fits["time"],
            "weather": fits["weather"],
            "open": fits["open"],
            "pop": popularity_score(place.user_ratings_total),
            "dist": fits["dist"],
        }
        vibe_index = _weighted(vibe_fits, LIVE_VIBE_WEIGHTS)
        vibe_state = live_vibe_state(vibe_index)

    return PlaceScore(
        score=score,
        distance_km=km,
        indoor=indoor,
        weather_fit=fits["weather"],
        live_vibe_index=vibe_index,
        live_vibe_state=vibe_state,
        reason_tokens=reason_tokens(
            open_now=place.open_now,
            km=km,
            indoor=indoor,
            wfit=fits["weather"],
            rating=place.rating,
            vibe=prefs.vibe,
            featured=featured,
        ),
        is_featured=featured,
        debug_scores={k: round(v, 4) for k, v in fits.items()},
    )


def maps_url(place: CandidatePlace) -> str:
    return (
        "https://www.google.com/maps/search/?api=1"
        f"&query={urllib.parse.quote(place.name, safe='')}"
        f"&query_place_id={urllib.parse.quote(place.place_id, safe='')}"
    )


def to_scored_place(place: CandidatePlace, result: PlaceScore) -> ScoredPlace:
    return ScoredPlace(
        place_id=place.place_id,
        name=place.name,
        rating=place.rating,
        user_ratings_total=place.user_ratings_total,
        vicinity=place.vicinity,
        maps_url=maps_url(place),
        distance_km=round(result.distance_km, 1),
        score=result.score,
        live_vibe_index=result.live_vibe_index,
        live_vibe_state=result.live_vibe_state,
        reason_tokens=list(result.reason_tokens),
        is_featured=result.is_featured,
    )
