from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models import CityRef

DEFAULT_CITY_SLUG = "athens"
DEFAULT_RADIUS_METERS = 3000
MY_LOCATION = "my-location"

GREECE_CITIES: List[Dict[str, Any]] = [
    {"id": "athens", "name": "Athens", "localName": "Αθήνα", "region": "Attica", "lat": 37.9838, "lng": 23.7275, "priority": 1, "tags": ["capital", "culture"], "defaultRadiusMeters": 3000},
    {"id": "thessaloniki", "name": "Thessaloniki", "localName": "Θεσσαλονίκη", "region": "Central Macedonia", "lat": 40.6401, "lng": 22.9444, "priority": 2, "tags": ["food", "nightlife"], "defaultRadiusMeters": 3000},
    {"id": "piraeus", "name": "Piraeus", "localName": "Πειραιάς", "region": "Attica", "lat": 37.9429, "lng": 23.6470, "priority": 3, "tags": ["port"]},
    {"id": "heraklion", "name": "Heraklion", "localName": "Ηράκλειο", "region": "Crete", "lat": 35.3387, "lng": 25.1442, "priority": 4, "tags": ["island", "culture"]},
    {"id": "chania", "name": "Chania", "localName": "Χανιά", "region": "Crete", "lat": 35.5138, "lng": 24.0180, "priority": 5, "tags": ["island", "old-town"], "defaultRadiusMeters": 2500},
    {"id": "rhodes", "name": "Rhodes", "localName": "Ρόδος", "region": "South Aegean", "lat": 36.4341, "lng": 28.2176, "priority": 6, "tags": ["island", "old-town"]},
    {"id": "patras", "name": "Patras", "localName": "Πάτρα", "region": "Western Greece", "lat": 38.2466, "lng": 21.7346, "priority": 7, "tags": ["port"]},
    {"id": "nafplio", "name": "Nafplio", "localName": "Ναύπλιο", "region": "Peloponnese", "lat": 37.5673, "lng": 22.8016, "priority": 8, "tags": ["old-town"], "defaultRadiusMeters": 2000},
    {"id": "corfu", "name": "Corfu", "localName": "Κέρκυρα", "region": "Ionian Islands", "lat": 39.6243, "lng": 19.9217, "priority": 9, "tags": ["island"]},
    {"id": "mykonos", "name": "Mykonos", "localName": "Μύκονος", "region": "South Aegean", "lat": 37.4467, "lng": 25.3289, "priority": 10, "tags": ["island", "nightlife"], "defaultRadiusMeters": 4000},
    {"id": "santorini", "name": "Santorini", "localName": "Σαντορίνη", "region": "South Aegean", "lat": 36.4166, "lng": 25.4322, "priority": 11, "tags": ["island", "views"], "defaultRadiusMeters": 6000},
    {"id": "naxos", "name": "Naxos", "localName": "Νάξος", "region": "South Aegean", "lat": 37.1036, "lng": 25.3766, "priority": 12, "tags": ["island"], "defaultRadiusMeters": 5000},
    {"id": "ioannina", "name": "Ioannina", "localName": "Ιωάννινα", "region": "Epirus", "lat": 39.6650, "lng": 20.8537, "priority": 13, "tags": ["lake"]},
    {"id": "kalamata", "name": "Kalamata", "localName": "Καλαμάτα", "region": "Peloponnese", "lat": 37.0389, "lng": 22.1142, "priority": 14, "tags": ["beach"]},
    {"id": "volos", "name": "Volos", "localName": "Βόλος", "region": "Thessaly", "lat": 39.3622, "lng": 22.9420, "priority": 15, "tags": ["port", "food"]},
]


def _normalize_id(value: Any) -> str:
    return str(value if value is not None else "").strip().lower()


def _positive_number(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return int(value)


def normalize_city(raw: Dict[str, Any]) -> Optional[CityRef]:
    slug = _normalize_id(raw.get("id") or raw.get("slug"))
    if not slug:
        return None
    try:
        lat = float(raw.get("lat"))
        lng = float(raw.get("lng"))
    except (TypeError, ValueError):
        return None
    if not math.isfinite(lat) or not math.isfinite(lng):
        return None

    priority = raw.get("priority")
    return CityRef(
        id=slug,
        slug=slug,
        name=str(raw.get("name") or ""),
        region=str(raw.get("region") or ""),
        lat=lat,
        lng=lng,
        local_name=str(raw["localName"]) if raw.get("localName") else None,
        priority=priority if isinstance(priority, int) else None,
        tags=tuple(str(t) for t in raw.get("tags") or []),
        default_radius_meters=_positive_number(raw.get("defaultRadiusMeters")),
        featured_place_ids=tuple(str(p) for p in raw.get("featuredPlaceIds") or []),
    )


class CityTable:
    """Immutable slug-keyed city lookup, built once at startup."""

    def __init__(self, cities: Iterable[CityRef], default_radius_meters: int = DEFAULT_RADIUS_METERS) -> None:
        ordered = sorted(cities, key=lambda c: c.priority if c.priority is not None else 999)
        if not ordered:
            raise ValueError("city table needs at least one city")
        self._cities: Tuple[CityRef, ...] = tuple(ordered)
        self._by_slug: Dict[str, CityRef] = {}
        for city in self._cities:
            self._by_slug.setdefault(city.slug, city)
        self.default_radius_meters = _positive_number(default_radius_meters) or DEFAULT_RADIUS_METERS

    @classmethod
    def from_records(
        cls, records: Iterable[Dict[str, Any]], default_radius_meters: int = DEFAULT_RADIUS_METERS
    ) -> "CityTable":
        cities = [c for c in (normalize_city(r) for r in records) if c is not None]
        return cls(cities, default_radius_meters)

    def all(self) -> Tuple[CityRef, ...]:
        return self._cities

    def get(self, slug: Optional[str]) -> Optional[CityRef]:
        if not slug:
            return None
        return self._by_slug.get(_normalize_id(slug))

    def default(self) -> CityRef:
        return self._by_slug.get(DEFAULT_CITY_SLUG) or self._cities[0]

    def radius_meters(self, city: CityRef, override: Optional[float] = None) -> int:
        return (
            _positive_number(override)
            or city.default_radius_meters
            or self.default_radius_meters
        )


def lookup_city(table: CityTable, slug: Optional[str]) -> CityRef:
    return table.get(slug) or table.default()
