"""SQLAlchemy ORM model for users and their engagement counters."""

from datetime import UTC, datetime
from enum import StrEnum

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base


class Role(StrEnum):
    """Account roles.  Lecturers rate ideas instead of liking them."""

    student = "Student"
    lecturer = "Lecturer"
    admin = "Admin"


VALID_ROLES = tuple(r.value for r in Role)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """Identity plus the counters the ranking job reads.

    ``total_ideas``, ``total_likes`` and ``total_ratings`` are changed only
    by the engagement operations, through atomic column-expression updates.
    ``score`` and ``top_contributor`` are written only by the ranking job.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_top_contributor", "top_contributor"),
        CheckConstraint("total_ideas >= 0", name="total_ideas_non_negative"),
        CheckConstraint("total_likes >= 0", name="total_likes_non_negative"),
        CheckConstraint("total_ratings >= 0", name="total_ratings_non_negative"),
        CheckConstraint(
            "role IN ('Student', 'Lecturer', 'Admin')",
            name="role",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    total_ideas: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    total_likes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    # Sum of rating points received, not the number of ratings
    total_ratings: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    top_contributor: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
