"""Batch scoring and top-contributor flagging.

Called periodically by the scheduler.  One run:

1. Pages through users with ``total_ideas > 0`` and ``total_likes > 0``.
2. Scores each one and persists the score (winners or not).
3. Keeps users whose score reaches the minimum threshold.
4. Orders them by score descending, ties by ascending user id.
5. Takes the top N.
6. Updates ``top_contributor`` by symmetric difference: only users leaving
   the set are cleared and only users entering it are set, so the flag set
   is never observed empty mid-run.

Everything happens in the caller's transaction; on any failure the caller
rolls back and the previous flag set stays intact.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from backend.app.core.logging import (
    EVENT_SCORES_RECOMPUTED,
    EVENT_TOP_CONTRIBUTORS_UPDATED,
    log_event,
)
from backend.app.models.user import User
from backend.app.services.scoring import ScoreWeights, compute_score

logger = logging.getLogger(__name__)

_PAGE_SIZE = 200

DEFAULT_TOP_N = 3
DEFAULT_MIN_SCORE = 1.0


@dataclass(frozen=True)
class RankingResult:
    """Summary of one ranking run."""

    scored: int
    score_updates: int
    winners: tuple[int, ...]
    promoted: tuple[int, ...]
    demoted: tuple[int, ...]

    @property
    def changed(self) -> bool:
        return bool(self.promoted or self.demoted)


def select_winners(
    candidates: Iterable[tuple[int, float]],
    *,
    top_n: int = DEFAULT_TOP_N,
    min_score: float = DEFAULT_MIN_SCORE,
) -> list[int]:
    """Pick the top *top_n* ``(user_id, score)`` pairs scoring at least *min_score*.

    Ordering is score descending, then user id ascending, so equal scores
    always resolve the same way regardless of storage order.
    """
    contenders = [(user_id, score) for user_id, score in candidates if score >= min_score]
    contenders.sort(key=lambda pair: (-pair[1], pair[0]))
    return [user_id for user_id, _ in contenders[:top_n]]


def _iter_eligible(db: Session) -> Iterable[User]:
    """Yield eligible users in id order, one page at a time."""
    last_id = 0
    while True:
        page = list(
            db.execute(
                select(User)
                .where(
                    User.total_ideas > 0,
                    User.total_likes > 0,
                    User.id > last_id,
                )
                .order_by(User.id)
                .limit(_PAGE_SIZE)
            ).scalars()
        )
        if not page:
            return
        yield from page
        last_id = page[-1].id


def recompute_top_contributors(
    db: Session,
    *,
    weights: ScoreWeights,
    top_n: int = DEFAULT_TOP_N,
    min_score: float = DEFAULT_MIN_SCORE,
) -> RankingResult:
    """Score every eligible user and move the top-contributor flags.

    This function is **idempotent**: unchanged counters produce unchanged
    scores and an unchanged flag set.
    """
    candidates: list[tuple[int, float]] = []
    score_updates = 0

    for user in _iter_eligible(db):
        score = compute_score(
            total_ideas=user.total_ideas,
            total_likes=user.total_likes,
            total_ratings=user.total_ratings,
            weights=weights,
        )
        if user.score != score:
            user.score = score
            score_updates += 1
        candidates.append((user.id, score))

    if score_updates:
        db.flush()

    log_event(
        logger, "info", EVENT_SCORES_RECOMPUTED,
        scored=len(candidates),
        updated=score_updates,
    )

    winners = select_winners(candidates, top_n=top_n, min_score=min_score)
    current = set(
        db.execute(select(User.id).where(User.top_contributor.is_(True))).scalars()
    )
    promoted = tuple(sorted(set(winners) - current))
    demoted = tuple(sorted(current - set(winners)))

    if demoted:
        db.execute(
            update(User)
            .where(User.id.in_(demoted))
            .values(top_contributor=False)
            .execution_options(synchronize_session="fetch")
        )
    if promoted:
        db.execute(
            update(User)
            .where(User.id.in_(promoted))
            .values(top_contributor=True)
            .execution_options(synchronize_session="fetch")
        )
    db.flush()

    result = RankingResult(
        scored=len(candidates),
        score_updates=score_updates,
        winners=tuple(winners),
        promoted=promoted,
        demoted=demoted,
    )
    if result.changed:
        log_event(
            logger, "info", EVENT_TOP_CONTRIBUTORS_UPDATED,
            winners=list(result.winners),
            promoted=list(promoted),
            demoted=list(demoted),
        )
    return result
