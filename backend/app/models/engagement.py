"""Pydantic models for user, idea and report requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from backend.app.models.idea import MAX_RATING, MIN_RATING
from backend.app.models.user import Role

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 10_000


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


NonBlankStr = Annotated[str, AfterValidator(_strip_required)]


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Registration payload.  Credentials are handled by the auth service."""

    email: str = Field(..., min_length=3, max_length=255)
    display_name: NonBlankStr = Field(..., min_length=1, max_length=200)
    role: Role

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value:
            raise ValueError("must be an email address")
        return value


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    display_name: str
    role: Role
    total_ideas: int
    total_likes: int
    total_ratings: int
    score: float | None
    top_contributor: bool


class AchievementsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_ideas: int
    total_likes: int
    total_ratings: int
    score: float | None
    top_contributor: bool


class TopContributorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    display_name: str
    role: Role
    total_ideas: int
    total_likes: int
    total_ratings: int
    score: float | None


# ---------------------------------------------------------------------------
# Ideas
# ---------------------------------------------------------------------------


class IdeaCreate(BaseModel):
    """Submission payload for a new idea."""

    title: NonBlankStr = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: NonBlankStr = Field(..., min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    user_id: int


class LikeRequest(BaseModel):
    user_id: int


class RateRequest(BaseModel):
    user_id: int
    rating_value: int = Field(..., ge=MIN_RATING, le=MAX_RATING)


class OwnerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    display_name: str
    role: str


class RatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    rating_value: int


class IdeaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    owner: OwnerResponse
    liked_by: list[int]
    likes_count: int
    ratings: list[RatingResponse]
    total_ratings: int
    rating_count: int
    created_at: datetime


class IdeaSummaryResponse(BaseModel):
    """Compact listing used on a user's profile page."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    likes_count: int
    liked_by: list[int]


# ---------------------------------------------------------------------------
# Reports & realtime
# ---------------------------------------------------------------------------


class ReportResponse(BaseModel):
    total_student_ideas: int = 0
    total_lecturer_ideas: int = 0
    total_admin_ideas: int = 0


EventType = Literal["newIdea", "likeIdea", "topContributors"]


class EventMessage(BaseModel):
    """Envelope pushed to every connected observer."""

    type: EventType
    payload: dict[str, object]
