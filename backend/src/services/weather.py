from __future__ import annotations

from typing import Iterable, Optional

import requests
from loguru import logger

from config import Configuration
from models import Coordinate, LiveWeather
from utils import clamp01, norm_types

NEUTRAL_WEATHER_FIT = 0.7

WORSHIP_TYPES = {"church", "synagogue", "mosque", "hindu_temple"}

INDOOR_TYPES = {
    "museum",
    "art_gallery",
    "shopping_mall",
    "aquarium",
    "library",
    "movie_theater",
} | WORSHIP_TYPES

RAINY_LABELS = {"rain", "storm"}


def is_indoor(types: Optional[Iterable[str]]) -> bool:
    return bool(norm_types(types) & INDOOR_TYPES)


def _is_wet(live: LiveWeather) -> bool:
    return live.precipitation > 2 or live.precipitation_probability > 70


def weather_fit(indoor: bool, live: Optional[LiveWeather] = None) -> float:
    if live is None:
        return NEUTRAL_WEATHER_FIT

    score = 1.0

    if _is_wet(live) and not indoor:
        score -= 0.5

    if live.wind_speed > 40:
        score -= 0.05 if indoor else 0.3

    if live.temperature > 34 and not indoor:
        score -= 0.25

    if live.temperature < 8 and not indoor:
        score -= 0.2

    if live.cloud_cover > 85 and not indoor:
        score -= 0.15

    return clamp01(score)


def categorical_weather_fit(indoor: bool, label: str) -> float:
    rainy = label in RAINY_LABELS
    if indoor:
        return 1.0 if rainy else 0.7
    return 0.25 if rainy else 1.0


def weather_label(live: Optional[LiveWeather]) -> str:
    if live is None:
        return "sunny"
    if _is_wet(live):
        return "storm" if live.wind_speed > 40 else "rain"
    if live.cloud_cover > 85:
        return "cloudy"
    return "sunny"


def _number(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


class OpenMeteoClient:
    """Current conditions from Open-Meteo. Failures yield ``None``."""

    def __init__(self, cfg: Configuration) -> None:
        self.cfg = cfg
        self.base = cfg.open_meteo_base_url.rstrip("/")
        self.session = requests.Session()

    def current(self, origin: Coordinate) -> Optional[LiveWeather]:
        params = {
            "latitude": origin.lat,
            "longitude": origin.lng,
            "current": "temperature_2m,precipitation,wind_speed_10m,cloud_cover",
            "hourly": "precipitation_probability",
        }
        try:
            resp = self.session.get(f"{self.base}/v1/forecast", params=params, timeout=self.cfg.weather_timeout)
        except requests.RequestException as exc:
            logger.warning("weather request failed: {}", exc)
            return None

        if not resp.ok:
            logger.warning("weather upstream {}: {}", resp.status_code, resp.text[:200])
            return None

        try:
            payload = resp.json()
        except ValueError:
            logger.warning("weather returned invalid json")
            return None
        if not isinstance(payload, dict):
            return None

        current = payload.get("current") or {}
        hourly = payload.get("hourly") or {}
        probabilities = hourly.get("precipitation_probability") or []

        return LiveWeather(
            temperature=_number(current.get("temperature_2m")),
            precipitation=_number(current.get("precipitation")),
            precipitation_probability=_number(probabilities[0]) if probabilities else 0.0,
            wind_speed=_number(current.get("wind_speed_10m")),
            cloud_cover=_number(current.get("cloud_cover")),
        )
