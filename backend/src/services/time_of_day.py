from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from utils import clamp01, norm_types

BASELINE = 0.7


def day_part(hour: int) -> Optional[str]:
    if 6 <= hour < 11:
        return "morning"
    if 11 <= hour < 15:
        return "lunch"
    if 15 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 23:
        return "evening"
    if hour >= 23 or hour < 3:
        return "late_night"
    return None


def time_of_day_fit(now: datetime, types: Optional[Iterable[str]]) -> float:
    t = norm_types(types)
    part = day_part(now.hour)
    score = BASELINE

    if part == "morning":
        if t & {"cafe", "bakery", "park"}:
            score += 0.25
        if t & {"bar", "night_club"}:
            score -= 0.3
    elif part == "lunch":
        if t & {"restaurant", "meal_takeaway"}:
            score += 0.25
    elif part == "afternoon":
        if t & {"museum", "tourist_attraction", "park"}:
            score += 0.2
    elif part == "evening":
        if t & {"restaurant", "bar"}:
            score += 0.25
    elif part == "late_night":
        if t & {"bar", "night_club"}:
            score += 0.3
        if t & {"museum", "park"}:
            score -= 0.3

    return clamp01(score)
