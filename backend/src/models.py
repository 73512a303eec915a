"""Data models for the place feed."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, List, Optional

AUDIENCES = ("general", "solo", "couples", "friends", "family")
VIBES = ("food", "culture", "views", "nightlife", "relax")
MOBILITIES = ("walk", "car", "boat")
BUDGETS = ("low", "mid", "high")
WEATHER_LABELS = ("sunny", "cloudy", "rain", "storm")
WEATHER_UNKNOWN = "unknown"

HAPPENING_NOW = "happening-now"
LATER_TODAY = "later-today"
THIS_EVENING = "this-evening"
RAIN_FRIENDLY = "rain-friendly"
SECTIONS = (HAPPENING_NOW, LATER_TODAY, THIS_EVENING, RAIN_FRIENDLY)

# payload key per section
SECTION_KEYS = {
    HAPPENING_NOW: "hotNow",
    LATER_TODAY: "laterToday",
    THIS_EVENING: "evening",
    RAIN_FRIENDLY: "rainy",
}


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


@dataclass
class CandidatePlace:
    place_id: str
    name: str
    lat: float
    lng: float
    types: list[str] = field(default_factory=list)
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    open_now: Optional[bool] = None
    price_level: Optional[int] = None
    vicinity: Optional[str] = None

    @property
    def location(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)


@dataclass(frozen=True)
class LiveWeather:
    temperature: float = 0.0
    precipitation: float = 0.0
    precipitation_probability: float = 0.0
    wind_speed: float = 0.0
    cloud_cover: float = 0.0


@dataclass(frozen=True)
class WeatherContext:
    label: str = WEATHER_UNKNOWN
    live: Optional[LiveWeather] = None
    source: str = "unavailable"  # live | override | unavailable


@dataclass(frozen=True)
class PreferenceSet:
    audience: str = "general"
    vibe: str = "culture"
    mobility: str = "walk"
    budget: str = "mid"


@dataclass(frozen=True)
class ScoreContext:
    origin: Coordinate
    now: datetime
    weather: WeatherContext = field(default_factory=WeatherContext)
    prefs: PreferenceSet = field(default_factory=PreferenceSet)
    featured_ids: FrozenSet[str] = frozenset()


@dataclass
class PlaceScore:
    score: int
    distance_km: float
    indoor: bool
    weather_fit: float
    live_vibe_index: int
    live_vibe_state: str
    reason_tokens: List[str] = field(default_factory=list)
    is_featured: bool = False
    debug_scores: dict[str, float] = field(default_factory=dict)


@dataclass
class ScoredPlace:
    place_id: str
    name: str
    rating: Optional[float]
    user_ratings_total: Optional[int]
    vicinity: Optional[str]
    maps_url: str
    distance_km: float
    score: int
    live_vibe_index: Optional[int] = None
    live_vibe_state: Optional[str] = None
    reason_tokens: List[str] = field(default_factory=list)
    is_featured: bool = False


@dataclass(frozen=True)
class CityRef:
    id: str
    slug: str
    name: str
    region: str
    lat: float
    lng: float
    local_name: Optional[str] = None
    priority: Optional[int] = None
    tags: tuple[str, ...] = ()
    default_radius_meters: Optional[int] = None
    featured_place_ids: tuple[str, ...] = ()

    @property
    def location(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)
