"""Atomic counter updates for users, ideas and the idea report.

Every write here is a single ``UPDATE ... SET col = col + :delta`` so that
concurrent requests never lose increments to a read-modify-write race.
Idea rows are additionally guarded by their ``version`` column: the update
only applies when the row still carries the version the caller read, and
:class:`StaleIdeaError` tells the caller to retry the whole transaction.

Functions operate on a caller-supplied ``Session``; the caller owns the
transaction boundary.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from backend.app.core.errors import handle_operational_error
from backend.app.models.idea import Idea
from backend.app.models.idea_report import REPORT_ROW_ID, IdeaReport
from backend.app.models.user import Role, User

logger = logging.getLogger(__name__)


class StaleIdeaError(Exception):
    """The idea row changed between read and conditional update."""


_REPORT_COLUMNS = {
    Role.student: "total_student_ideas",
    Role.lecturer: "total_lecturer_ideas",
    Role.admin: "total_admin_ideas",
}


def _expire_loaded(db: Session, model: type, pk: int, attrs: list[str]) -> None:
    """Expire *attrs* on an already-loaded instance so it re-reads the row."""
    obj = db.identity_map.get(db.identity_key(model, pk))
    if obj is not None:
        db.expire(obj, attrs)


def increment_user_counters(
    db: Session,
    user_id: int,
    *,
    ideas: int = 0,
    likes: int = 0,
    ratings: int = 0,
) -> bool:
    """Apply counter deltas to one user.  Returns False if the user is gone."""
    values: dict[str, object] = {}
    if ideas:
        values["total_ideas"] = User.total_ideas + ideas
    if likes:
        values["total_likes"] = User.total_likes + likes
    if ratings:
        values["total_ratings"] = User.total_ratings + ratings
    if not values:
        return True

    try:
        result = db.execute(
            update(User)
            .where(User.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
    except OperationalError as exc:
        handle_operational_error(exc, "increment_user_counters")
    _expire_loaded(db, User, user_id, list(values))

    if result.rowcount == 0:
        logger.warning("user_counters_missing_user: user_id=%d", user_id)
        return False
    return True


def bump_idea_totals(
    db: Session,
    idea_id: int,
    *,
    expected_version: int,
    likes: int = 0,
    ratings: int = 0,
    rating_count: int = 0,
) -> None:
    """Apply deltas to an idea's totals if its version is unchanged.

    Raises:
        StaleIdeaError: Another writer updated the idea first.
    """
    try:
        result = db.execute(
            update(Idea)
            .where(Idea.id == idea_id, Idea.version == expected_version)
            .values(
                likes_count=Idea.likes_count + likes,
                total_ratings=Idea.total_ratings + ratings,
                rating_count=Idea.rating_count + rating_count,
                version=Idea.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
    except OperationalError as exc:
        handle_operational_error(exc, "bump_idea_totals")
    if result.rowcount != 1:
        raise StaleIdeaError(
            f"Idea {idea_id} changed concurrently (expected version {expected_version})"
        )
    _expire_loaded(
        db, Idea, idea_id, ["likes_count", "total_ratings", "rating_count", "version"],
    )


def increment_report(db: Session, role: str) -> None:
    """Count one more idea for *role* in the single-row report."""
    column = _REPORT_COLUMNS[Role(role)]
    try:
        result = db.execute(
            update(IdeaReport)
            .where(IdeaReport.id == REPORT_ROW_ID)
            .values(
                {column: getattr(IdeaReport, column) + 1, "updated_at": datetime.now(UTC)}
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.add(IdeaReport(id=REPORT_ROW_ID, **{column: 1}))
            db.flush()
    except OperationalError as exc:
        handle_operational_error(exc, "increment_report")
    _expire_loaded(db, IdeaReport, REPORT_ROW_ID, [column, "updated_at"])
