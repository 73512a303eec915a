from __future__ import annotations

from typing import Iterable, Optional

from models import AUDIENCES, BUDGETS, MOBILITIES, VIBES, PreferenceSet
from services.weather import WORSHIP_TYPES
from utils import clamp01, norm_types, parse_enum

NEUTRAL_BUDGET_FIT = 0.65

# vibe -> (matching tags, boost)
VIBE_RULES: dict[str, tuple[set[str], float]] = {
    "food": ({"restaurant", "cafe", "bakery", "meal_takeaway"}, 0.20),
    "culture": ({"museum", "art_gallery"} | WORSHIP_TYPES, 0.20),
    "views": ({"tourist_attraction", "natural_feature", "park"}, 0.15),
    "nightlife": ({"bar", "night_club", "restaurant"}, 0.15),
    "relax": ({"park", "spa", "natural_feature"}, 0.15),
}

AUDIENCE_RULES: dict[str, tuple[set[str], float]] = {
    "family": ({"park", "aquarium", "museum", "zoo", "amusement_park"}, 0.12),
    "couples": ({"restaurant", "tourist_attraction", "museum"}, 0.08),
    "friends": ({"bar", "restaurant", "night_club"}, 0.08),
    "solo": ({"museum", "cafe", "art_gallery"}, 0.05),
}


def parse_preferences(
    audience: Optional[str] = None,
    vibe: Optional[str] = None,
    mobility: Optional[str] = None,
    budget: Optional[str] = None,
) -> PreferenceSet:
    return PreferenceSet(
        audience=parse_enum(audience, AUDIENCES, "general"),
        vibe=parse_enum(vibe, VIBES, "culture"),
        mobility=parse_enum(mobility, MOBILITIES, "walk"),
        budget=parse_enum(budget, BUDGETS, "mid"),
    )


def preference_boost(types: Optional[Iterable[str]], vibe: str, audience: str) -> float:
    t = norm_types(types)
    boost = 0.0

    vibe_rule = VIBE_RULES.get(vibe)
    if vibe_rule and t & vibe_rule[0]:
        boost += vibe_rule[1]

    audience_rule = AUDIENCE_RULES.get(audience)
    if audience_rule and t & audience_rule[0]:
        boost += audience_rule[1]

    return clamp01(boost)


def budget_fit(price_level: Optional[int], budget: str) -> float:
    if price_level is None:
        return NEUTRAL_BUDGET_FIT

    if budget == "low":
        if price_level <= 1:
            return 1.0
        return 0.6 if price_level == 2 else 0.25

    if budget == "high":
        if price_level >= 3:
            return 1.0
        return 0.75 if price_level == 2 else 0.45

    if price_level <= 2:
        return 1.0
    return 0.6 if price_level == 3 else 0.35
