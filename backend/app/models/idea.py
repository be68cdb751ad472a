"""SQLAlchemy ORM models for ideas, likes and ratings."""

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship

from backend.app.db.base import Base

MIN_RATING = 1
MAX_RATING = 5


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class OwnerSnapshot:
    """Copy of the owner's identity taken when the idea was created.

    Not a live reference: renaming the user later does not touch it.
    """

    user_id: int
    display_name: str
    role: str


class Idea(Base):
    """A submitted idea with denormalized engagement totals.

    ``likes_count``, ``total_ratings`` and ``rating_count`` always equal the
    size of ``likes``, the sum of ``ratings[].rating_value`` and the size
    of ``ratings`` respectively.  Every mutation bumps ``version``; writers
    update the row only where ``version`` still matches what they read.
    """

    __tablename__ = "ideas"
    __table_args__ = (
        Index("ix_ideas_created_at", "created_at"),
        Index("ix_ideas_owner_id", "owner_id"),
        CheckConstraint("likes_count >= 0", name="likes_count_non_negative"),
        CheckConstraint("total_ratings >= 0", name="total_ratings_non_negative"),
        CheckConstraint("rating_count >= 0", name="rating_count_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    owner_id: Mapped[int] = mapped_column(Integer, nullable=False)
    owner_name: Mapped[str] = mapped_column(String(200), nullable=False)
    owner_role: Mapped[str] = mapped_column(String(20), nullable=False)
    owner: Mapped[OwnerSnapshot] = composite("owner_id", "owner_name", "owner_role")

    likes_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    total_ratings: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    rating_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default="1",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    likes: Mapped[list["IdeaLike"]] = relationship(
        back_populates="idea", order_by="IdeaLike.id", cascade="all, delete-orphan",
    )
    ratings: Mapped[list["IdeaRating"]] = relationship(
        back_populates="idea", order_by="IdeaRating.id", cascade="all, delete-orphan",
    )

    @property
    def liked_by(self) -> list[int]:
        """User ids in the order the likes were added."""
        return [like.user_id for like in self.likes]


class IdeaLike(Base):
    """Membership of one user in an idea's likes set."""

    __tablename__ = "idea_likes"
    __table_args__ = (
        UniqueConstraint("idea_id", "user_id", name="uq_idea_likes_idea_id_user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    idea_id: Mapped[int] = mapped_column(
        ForeignKey("ideas.id", ondelete="CASCADE"), nullable=False,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    idea: Mapped[Idea] = relationship(back_populates="likes")


class IdeaRating(Base):
    """One user's current rating of an idea.  Re-rating replaces the value."""

    __tablename__ = "idea_ratings"
    __table_args__ = (
        UniqueConstraint("idea_id", "user_id", name="uq_idea_ratings_idea_id_user_id"),
        CheckConstraint(
            f"rating_value BETWEEN {MIN_RATING} AND {MAX_RATING}",
            name="rating_value_range",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    idea_id: Mapped[int] = mapped_column(
        ForeignKey("ideas.id", ondelete="CASCADE"), nullable=False,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    rating_value: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    idea: Mapped[Idea] = relationship(back_populates="ratings")
