"""Engagement operations on ideas: create, like/unlike toggle, rate/re-rate.

Each operation mutates the idea and fans its counter deltas out through
:mod:`backend.app.services.counter_store` inside the caller's transaction,
so the idea row and the owner's counters commit (or roll back) together.
Run them through :func:`~backend.app.services.transactions.commit_with_retry`
to get bounded retries when another request touched the same idea.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, selectinload

from backend.app.core.errors import (
    ForbiddenError,
    NotFoundError,
    ValidationError,
    handle_operational_error,
)
from backend.app.core.logging import (
    EVENT_IDEA_CREATED,
    EVENT_IDEA_LIKE_TOGGLED,
    EVENT_IDEA_RATED,
    log_event,
)
from backend.app.models.idea import (
    MAX_RATING,
    MIN_RATING,
    Idea,
    IdeaLike,
    IdeaRating,
    OwnerSnapshot,
)
from backend.app.models.idea_report import REPORT_ROW_ID, IdeaReport
from backend.app.models.user import Role, User
from backend.app.services.counter_store import (
    bump_idea_totals,
    increment_report,
    increment_user_counters,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LikeToggleResult:
    idea: Idea
    liked: bool


@dataclass(frozen=True)
class RatingResult:
    idea: Idea
    previous_value: int | None

    @property
    def replaced(self) -> bool:
        return self.previous_value is not None


def _flush(db: Session, operation: str) -> None:
    try:
        db.flush()
    except OperationalError as exc:
        handle_operational_error(exc, operation)


# ---------------------------------------------------------------------------
# Write paths
# ---------------------------------------------------------------------------


def create_idea(
    db: Session,
    *,
    title: str,
    description: str,
    user_id: int,
) -> Idea:
    """Persist a new idea and count it for its owner and in the report.

    The owner snapshot (id, name, role) is copied from the user now and
    never re-synced.

    Raises:
        ValidationError: Blank title/description, or the user does not exist.
    """
    title = title.strip()
    description = description.strip()
    if not title or not description:
        raise ValidationError("title and description are required")

    user = db.get(User, user_id)
    if user is None:
        raise ValidationError(f"Cannot submit an idea for unknown user: id={user_id}")

    idea = Idea(
        title=title,
        description=description,
        owner=OwnerSnapshot(
            user_id=user.id, display_name=user.display_name, role=user.role,
        ),
    )
    db.add(idea)
    _flush(db, "create_idea")

    increment_user_counters(db, user.id, ideas=1)
    increment_report(db, user.role)

    log_event(
        logger, "info", EVENT_IDEA_CREATED,
        idea_id=idea.id,
        owner_id=user.id,
        title_len=len(title),
        description_len=len(description),
    )
    return idea


def toggle_like(db: Session, *, idea_id: int, user_id: int) -> LikeToggleResult:
    """Add *user_id* to the idea's likes, or remove it if already present.

    The owner's ``total_likes`` moves by the same +1/-1 as ``likes_count``.
    Repeated toggles by one user alternate between liked and not liked.

    Raises:
        NotFoundError: Idea or user does not exist.
        ForbiddenError: Lecturers rate ideas instead of liking them.
        StaleIdeaError: The idea changed concurrently (retry the transaction).
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User not found: id={user_id}")
    if user.role == Role.lecturer:
        raise ForbiddenError("Lecturers cannot like ideas; rate them instead")

    idea = get_by_id(db, idea_id)
    expected_version = idea.version

    existing = next((like for like in idea.likes if like.user_id == user_id), None)
    if existing is not None:
        idea.likes.remove(existing)
        delta = -1
    else:
        idea.likes.append(IdeaLike(user_id=user_id))
        delta = 1
    _flush(db, "toggle_like")

    bump_idea_totals(db, idea_id, expected_version=expected_version, likes=delta)
    increment_user_counters(db, idea.owner_id, likes=delta)

    log_event(
        logger, "info", EVENT_IDEA_LIKE_TOGGLED,
        idea_id=idea_id,
        user_id=user_id,
        liked=delta > 0,
        owner_id=idea.owner_id,
    )
    return LikeToggleResult(idea=idea, liked=delta > 0)


def rate_idea(
    db: Session,
    *,
    idea_id: int,
    user_id: int,
    rating_value: int,
) -> RatingResult:
    """Upsert *user_id*'s rating of an idea.

    A first rating appends and adds its value to ``total_ratings``; a
    re-rating replaces the old value in place, so ``rating_count`` stays
    put and only the difference reaches the totals.

    Raises:
        ValidationError: *rating_value* is not an integer in [1, 5].
        NotFoundError: Idea or user does not exist.
        StaleIdeaError: The idea changed concurrently (retry the transaction).
    """
    if (
        isinstance(rating_value, bool)
        or not isinstance(rating_value, int)
        or not MIN_RATING <= rating_value <= MAX_RATING
    ):
        raise ValidationError(
            f"rating_value must be an integer between {MIN_RATING} and {MAX_RATING}"
        )

    idea = get_by_id(db, idea_id)
    if db.get(User, user_id) is None:
        raise NotFoundError(f"User not found: id={user_id}")
    expected_version = idea.version

    existing = next((r for r in idea.ratings if r.user_id == user_id), None)
    if existing is not None:
        previous_value: int | None = existing.rating_value
        delta = rating_value - existing.rating_value
        existing.rating_value = rating_value
        existing.updated_at = datetime.now(UTC)
        count_delta = 0
    else:
        previous_value = None
        idea.ratings.append(IdeaRating(user_id=user_id, rating_value=rating_value))
        delta = rating_value
        count_delta = 1
    _flush(db, "rate_idea")

    bump_idea_totals(
        db,
        idea_id,
        expected_version=expected_version,
        ratings=delta,
        rating_count=count_delta,
    )
    increment_user_counters(db, idea.owner_id, ratings=delta)

    log_event(
        logger, "info", EVENT_IDEA_RATED,
        idea_id=idea_id,
        user_id=user_id,
        rating_value=rating_value,
        replaced=previous_value is not None,
    )
    return RatingResult(idea=idea, previous_value=previous_value)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_by_id(db: Session, idea_id: int) -> Idea:
    """Fetch an idea by primary key.

    Raises:
        NotFoundError: If no idea with *idea_id* exists.
    """
    idea = db.get(Idea, idea_id)
    if idea is None:
        raise NotFoundError(f"Idea not found: id={idea_id}")
    return idea


def list_ideas(db: Session) -> list[Idea]:
    """Return every idea, newest first."""
    return list(
        db.execute(
            select(Idea)
            .options(selectinload(Idea.likes), selectinload(Idea.ratings))
            .order_by(Idea.created_at.desc(), Idea.id.desc())
        ).scalars()
    )


def list_user_ideas(db: Session, user_id: int) -> list[Idea]:
    """Return ideas whose owner snapshot points at *user_id*, newest first."""
    return list(
        db.execute(
            select(Idea)
            .options(selectinload(Idea.likes))
            .where(Idea.owner_id == user_id)
            .order_by(Idea.created_at.desc(), Idea.id.desc())
        ).scalars()
    )


def get_report(db: Session) -> dict[str, int]:
    """Return per-role idea totals; zeros before the first submission."""
    report = db.get(IdeaReport, REPORT_ROW_ID)
    if report is None:
        return {
            "total_student_ideas": 0,
            "total_lecturer_ideas": 0,
            "total_admin_ideas": 0,
        }
    return {
        "total_student_ideas": report.total_student_ideas,
        "total_lecturer_ideas": report.total_lecturer_ideas,
        "total_admin_ideas": report.total_admin_ideas,
    }
