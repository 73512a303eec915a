from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Tuple
from zoneinfo import ZoneInfo

from loguru import logger

from config import Configuration
from models import (
    SECTION_KEYS,
    SECTIONS,
    WEATHER_LABELS,
    CityRef,
    Coordinate,
    LiveWeather,
    ScoreContext,
    WeatherContext,
)
from services.candidate_search import PlacesDirectory, aggregate
from services.cities import MY_LOCATION, CityTable, lookup_city
from services.preferences import parse_preferences
from services.ranking import build_featured, build_section
from services.weather import weather_label
from utils import is_finite_number, parse_enum


class WeatherProvider(Protocol):
    def current(self, origin: Coordinate) -> Optional[LiveWeather]:
        ...


@dataclass
class FeedRequest:
    city: Optional[str] = None
    user_lat: Optional[float] = None
    user_lng: Optional[float] = None
    radius: Optional[float] = None
    weather: Optional[str] = None
    audience: Optional[str] = None
    vibe: Optional[str] = None
    mobility: Optional[str] = None
    budget: Optional[str] = None


def _device_coordinate(req: FeedRequest) -> Optional[Coordinate]:
    lat, lng = req.user_lat, req.user_lng
    if not is_finite_number(lat) or not is_finite_number(lng):
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return Coordinate(float(lat), float(lng))


def resolve_origin(req: FeedRequest, cities: CityTable) -> Tuple[CityRef, Coordinate, str]:
    """Pick the request origin.

    Device coordinates win only when no city slug is given or the slug is
    ``my-location``. A known city slug always uses the city's coordinate.
    """
    slug = (req.city or "").strip().lower()
    if slug and slug != MY_LOCATION:
        city = lookup_city(cities, slug)
        return city, city.location, "city"

    city = cities.default()
    device = _device_coordinate(req)
    if device is not None:
        return city, device, "device"
    return city, city.location, "city"


async def resolve_weather(
    req: FeedRequest,
    origin: Coordinate,
    weather_client: Optional[WeatherProvider],
    enabled: bool = True,
) -> WeatherContext:
    override = parse_enum(req.weather, WEATHER_LABELS, "") if req.weather else ""
    if override:
        return WeatherContext(label=override, live=None, source="override")
    if not enabled or weather_client is None:
        return WeatherContext(source="unavailable")
    try:
        live = await asyncio.to_thread(weather_client.current, origin)
    except Exception as exc:
        logger.warning("weather lookup failed: {}", exc)
        live = None
    if live is None:
        return WeatherContext(source="unavailable")
    return WeatherContext(label=weather_label(live), live=live, source="live")


def local_now(cfg: Configuration) -> datetime:
    try:
        return datetime.now(ZoneInfo(cfg.local_timezone))
    except (KeyError, ValueError):
        logger.warning("unknown timezone {}, using UTC", cfg.local_timezone)
        return datetime.now(ZoneInfo("UTC"))


async def build_feed(
    req: FeedRequest,
    *,
    cfg: Configuration,
    cities: CityTable,
    places_client: PlacesDirectory,
    weather_client: Optional[WeatherProvider] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    cfg.require_google_maps()

    now = now or local_now(cfg)
    city, origin, origin_source = resolve_origin(req, cities)
    radius = cities.radius_meters(city, req.radius)
    prefs = parse_preferences(req.audience, req.vibe, req.mobility, req.budget)

    weather, candidates = await asyncio.gather(
        resolve_weather(req, origin, weather_client, cfg.live_weather_enabled),
        aggregate(
            places_client,
            origin,
            radius,
            cfg.place_types,
            max_candidates=cfg.max_candidates,
        ),
    )

    featured_ids = frozenset(city.featured_place_ids) | frozenset(cfg.featured_place_ids)
    ctx = ScoreContext(origin=origin, now=now, weather=weather, prefs=prefs, featured_ids=featured_ids)

    sections: Dict[str, Any] = {
        "featured": build_featured(candidates, featured_ids, ctx, cfg.featured_limit),
    }
    for section in SECTIONS:
        sections[SECTION_KEYS[section]] = build_section(section, candidates, ctx, cfg.section_limit)

    logger.info(
        "feed city={} origin={} radius={} weather={}({}) candidates={} prefs={}",
        city.slug,
        origin_source,
        radius,
        weather.label,
        weather.source,
        len(candidates),
        prefs,
    )

    return {
        "ok": True,
        "status": "OK",
        "context": {
            "location": {"lat": origin.lat, "lng": origin.lng},
            "time": now.isoformat(),
            "weather": weather.label,
            "weather_source": weather.source,
            "live_weather": dataclasses.asdict(weather.live) if weather.live else None,
            "radius": radius,
            "prefs": {"city": city.slug, **dataclasses.asdict(prefs)},
            "origin": origin_source,
            "city": {"id": city.id, "slug": city.slug, "name": city.name, "region": city.region},
        },
        "sections": sections,
    }
