from __future__ import annotations

import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import requests
from loguru import logger

from config import Configuration
from models import CandidatePlace, Coordinate
from utils import is_finite_number

OK_STATUSES = {"OK", "ZERO_RESULTS"}
RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class PlacesError(RuntimeError):
    pass


@dataclass
class _RetryPolicy:
    retries: int = 3
    base_delay: float = 0.5

    def should_retry(self, attempt: int) -> bool:
        return attempt <= self.retries

    def backoff(self, attempt: int) -> None:
        time.sleep(self.base_delay * attempt)


class _NearbyCache:
    """TTL + LRU cache of nearby results, shared by worker threads."""

    def __init__(self, ttl: float = 60, max_entries: int = 128) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self._entries: OrderedDict[str, Tuple[float, List[CandidatePlace]]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[List[CandidatePlace]]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, places = entry
            if time.time() - stored_at > self.ttl:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return list(places)

    def put(self, key: str, places: List[CandidatePlace]) -> None:
        with self._lock:
            self._entries[key] = (time.time(), list(places))
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _in_range(value: Any, low: float, high: float) -> bool:
    return is_finite_number(value) and low <= value <= high


def normalize_place(raw: dict) -> Optional[CandidatePlace]:
    """Map one Nearby Search result onto a CandidatePlace.

    Results without a ``place_id`` are dropped. Unparseable coordinates become
    NaN and are filtered out after merging. A rating outside 0-5, a negative or
    non-finite rating count and a price level outside 0-4 are treated as
    unknown.
    """
    place_id = raw.get("place_id")
    if not place_id:
        return None

    location = ((raw.get("geometry") or {}).get("location")) or {}
    opening_hours = raw.get("opening_hours") or {}
    open_now = opening_hours.get("open_now")
    rating = raw.get("rating")
    total = raw.get("user_ratings_total")
    price_level = raw.get("price_level")

    types: list[str] = []
    for t in raw.get("types") or []:
        tag = str(t).lower()
        if tag and tag not in types:
            types.append(tag)

    return CandidatePlace(
        place_id=str(place_id),
        name=str(raw.get("name") or "Place"),
        lat=_as_float(location.get("lat")),
        lng=_as_float(location.get("lng")),
        types=types,
        rating=float(rating) if _in_range(rating, 0, 5) else None,
        user_ratings_total=int(total) if _in_range(total, 0, math.inf) else None,
        open_now=open_now if isinstance(open_now, bool) else None,
        price_level=int(price_level) if _in_range(price_level, 0, 4) else None,
        vicinity=str(raw["vicinity"]) if raw.get("vicinity") else None,
    )


class GooglePlacesClient:
    """Nearby Search client. The API accepts a single ``type`` per call."""

    def __init__(self, cfg: Configuration) -> None:
        self.cfg = cfg
        self.base = cfg.google_places_base_url.rstrip("/")
        self.session = requests.Session()
        self.retry = _RetryPolicy()
        self.cache = _NearbyCache()

    def _get(self, path: str, params: dict) -> dict:
        url = f"{self.base}{path}"
        headers = {"Accept": "application/json"}
        params = {**params, "key": self.cfg.google_maps_api_key}
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = self.session.get(url, headers=headers, params=params, timeout=self.cfg.google_places_timeout)
            except requests.RequestException as exc:
                if self.retry.should_retry(attempt):
                    logger.debug("places request error (attempt {}): {}", attempt, exc)
                    self.retry.backoff(attempt)
                    continue
                raise PlacesError(f"request error: {exc}")

            if resp.status_code in RETRYABLE_STATUS and self.retry.should_retry(attempt):
                logger.debug("places upstream {} (attempt {})", resp.status_code, attempt)
                self.retry.backoff(attempt)
                continue

            if not resp.ok:
                raise PlacesError(f"upstream {resp.status_code}: {resp.text[:300]}")

            try:
                return resp.json()
            except ValueError:
                raise PlacesError("invalid json response")

    def nearby(self, origin: Coordinate, radius_m: int, place_type: str) -> List[CandidatePlace]:
        key = f"nearby:{place_type}:{origin.lat:.4f},{origin.lng:.4f}:{radius_m}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        payload = self._get(
            "/maps/api/place/nearbysearch/json",
            {
                "location": f"{origin.lat},{origin.lng}",
                "radius": radius_m,
                "type": place_type,
            },
        )
        status = payload.get("status")
        if status and status not in OK_STATUSES:
            detail = payload.get("error_message") or ""
            raise PlacesError(f"directory status {status} for type={place_type} {detail}".strip())

        results: list[CandidatePlace] = []
        for raw in payload.get("results") or []:
            if not isinstance(raw, dict):
                continue
            place = normalize_place(raw)
            if place is None:
                logger.debug("dropping result without place_id type={}", place_type)
                continue
            results.append(place)

        self.cache.put(key, results)
        return results
