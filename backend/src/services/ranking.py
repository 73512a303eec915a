from __future__ import annotations

from typing import Iterable, List

from models import HAPPENING_NOW, CandidatePlace, ScoreContext, ScoredPlace
from services.scoring import score_place, to_scored_place


def build_section(
    section: str,
    candidates: List[CandidatePlace],
    ctx: ScoreContext,
    limit: int = 6,
) -> List[ScoredPlace]:
    """Score every candidate for ``section`` and keep the best ``limit``.

    ``sorted`` is stable, so equal scores keep candidate order.
    """
    scored = [to_scored_place(place, score_place(place, ctx, section)) for place in candidates]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[: max(0, limit)]


def build_featured(
    candidates: List[CandidatePlace],
    featured_ids: Iterable[str],
    ctx: ScoreContext,
    limit: int = 4,
) -> List[ScoredPlace]:
    ids = set(featured_ids or ())
    if not ids:
        return []
    subset = [p for p in candidates if p.place_id in ids]
    return build_section(HAPPENING_NOW, subset, ctx, limit)
