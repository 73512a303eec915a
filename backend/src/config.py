from __future__ import annotations

import os
from typing import Any, Optional

from pydantic import BaseModel, Field

from utils import mask_secret

DEFAULT_PLACE_TYPES = [
    "tourist_attraction",
    "museum",
    "natural_feature",
    "park",
    "restaurant",
    "cafe",
    "bar",
]


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Configuration(BaseModel):
    # Google Places
    google_maps_api_key: Optional[str] = Field(default=None)
    google_places_base_url: str = Field(default="https://maps.googleapis.com")
    google_places_timeout: int = Field(default=10)
    place_types: list[str] = Field(default_factory=lambda: list(DEFAULT_PLACE_TYPES))

    # Open-Meteo
    open_meteo_base_url: str = Field(default="https://api.open-meteo.com")
    weather_timeout: int = Field(default=5)
    live_weather_enabled: bool = Field(default=True)

    # Feed
    max_candidates: int = Field(default=80)
    section_limit: int = Field(default=6)
    featured_limit: int = Field(default=4)
    default_radius_meters: int = Field(default=3000)
    featured_place_ids: list[str] = Field(default_factory=list)
    local_timezone: str = Field(default="Europe/Athens")

    @classmethod
    def from_env(cls, overrides: Optional[dict[str, Any]] = None) -> "Configuration":
        raw: dict[str, Any] = {}

        env_map = {
            "google_maps_api_key": os.getenv("GOOGLE_MAPS_API_KEY"),
            "google_places_base_url": os.getenv("GOOGLE_PLACES_BASE_URL"),
            "google_places_timeout": os.getenv("GOOGLE_PLACES_TIMEOUT"),
            "place_types": os.getenv("PLACE_TYPES"),
            "open_meteo_base_url": os.getenv("OPEN_METEO_BASE_URL"),
            "weather_timeout": os.getenv("WEATHER_TIMEOUT"),
            "live_weather_enabled": os.getenv("LIVE_WEATHER_ENABLED"),
            "max_candidates": os.getenv("MAX_CANDIDATES"),
            "section_limit": os.getenv("SECTION_LIMIT"),
            "featured_limit": os.getenv("FEATURED_LIMIT"),
            "default_radius_meters": os.getenv("DEFAULT_RADIUS_METERS"),
            "featured_place_ids": os.getenv("FEATURED_PLACE_IDS"),
            "local_timezone": os.getenv("LOCAL_TIMEZONE"),
        }

        bool_fields = {"live_weather_enabled"}
        list_fields = {"place_types", "featured_place_ids"}

        for k, v in env_map.items():
            if v is None:
                continue
            if k in bool_fields:
                raw[k] = str(v).lower() in {"1", "true", "yes", "on"}
            elif k in list_fields:
                raw[k] = _split_csv(v)
            else:
                raw[k] = v

        if overrides:
            raw.update({k: v for k, v in overrides.items() if v is not None})

        return cls(**raw)

    def require_google_maps(self) -> None:
        if not self.google_maps_api_key:
            raise ValueError("Missing GOOGLE_MAPS_API_KEY")

    def log_summary(self) -> str:
        return (
            "places=%s base=%s timeout=%s types=%d max_candidates=%s live_weather=%s tz=%s api_key=%s"
            % (
                bool(self.google_maps_api_key),
                self.google_places_base_url,
                self.google_places_timeout,
                len(self.place_types),
                self.max_candidates,
                self.live_weather_enabled,
                self.local_timezone,
                mask_secret(self.google_maps_api_key),
            )
        )
