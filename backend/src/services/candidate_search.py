from __future__ import annotations

import asyncio
import dataclasses
import math
from typing import Dict, List, Optional, Protocol, Sequence

from loguru import logger

from models import CandidatePlace, Coordinate

MAX_CANDIDATES = 80


class PlacesDirectory(Protocol):
    def nearby(self, origin: Coordinate, radius_m: int, place_type: str) -> List[CandidatePlace]:
        ...


def merge_place(existing: Optional[CandidatePlace], incoming: CandidatePlace) -> CandidatePlace:
    """Combine two records for the same place_id.

    Tags are unioned (existing order first). Every scalar field takes the
    incoming value, even when it is ``None``.
    """
    if existing is None:
        return dataclasses.replace(incoming, types=list(dict.fromkeys(incoming.types)))
    types = list(dict.fromkeys([*existing.types, *incoming.types]))
    return dataclasses.replace(incoming, types=types)


def dedupe_places(batches: Sequence[Sequence[CandidatePlace]]) -> List[CandidatePlace]:
    by_id: Dict[str, CandidatePlace] = {}
    for batch in batches:
        for place in batch:
            if not place.place_id:
                continue
            by_id[place.place_id] = merge_place(by_id.get(place.place_id), place)
    return list(by_id.values())


def has_finite_location(place: CandidatePlace) -> bool:
    try:
        return math.isfinite(place.lat) and math.isfinite(place.lng)
    except TypeError:
        return False


async def _fetch_type(
    client: PlacesDirectory, origin: Coordinate, radius_m: int, place_type: str
) -> List[CandidatePlace]:
    try:
        return await asyncio.to_thread(client.nearby, origin, radius_m, place_type)
    except Exception as exc:
        logger.warning("nearby fetch failed type={} error={}", place_type, exc)
        return []


async def aggregate(
    client: PlacesDirectory,
    origin: Coordinate,
    radius_meters: int,
    place_types: Sequence[str],
    *,
    max_candidates: int = MAX_CANDIDATES,
) -> List[CandidatePlace]:
    """Fetch every category concurrently and return one record per place.

    Truncation to ``max_candidates`` keeps merge insertion order and happens
    before scoring, so it is a coarse cost bound rather than a ranking step.
    """
    batches = await asyncio.gather(
        *(_fetch_type(client, origin, radius_meters, t) for t in place_types)
    )
    merged = dedupe_places(batches)
    usable = [p for p in merged if has_finite_location(p)]
    dropped = len(merged) - len(usable)
    if dropped:
        logger.debug("dropped {} candidates without finite coordinates", dropped)

    logger.info(
        "aggregated types={} fetched={} unique={} usable={}",
        len(place_types),
        sum(len(b) for b in batches),
        len(merged),
        len(usable),
    )
    return usable[: max(0, max_candidates)]
