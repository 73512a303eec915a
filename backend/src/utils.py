"""Utility helpers for the place feed."""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence, TypeVar

from models import Coordinate

T = TypeVar("T", bound=str)

EARTH_RADIUS_KM = 6371.0


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    if not value:
        return "unset"
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}...{value[-visible:]}"


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def haversine_km(origin: Coordinate, target: Coordinate) -> float:
    """Great-circle distance in kilometers."""
    phi1 = math.radians(origin.lat)
    phi2 = math.radians(target.lat)
    dphi = math.radians(target.lat - origin.lat)
    dlambda = math.radians(target.lng - origin.lng)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def parse_enum(value: Optional[str], allowed: Sequence[T], fallback: T) -> T:
    """Return ``value`` lowercased if it is one of ``allowed``, else ``fallback``."""
    if not value:
        return fallback
    v = str(value).strip().lower()
    for option in allowed:
        if option == v:
            return option
    return fallback


def norm_types(types: Optional[Iterable[str]]) -> set[str]:
    return {str(t).lower() for t in (types or []) if t}


def is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
