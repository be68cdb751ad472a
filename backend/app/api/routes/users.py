"""User routes: registration, achievements, owned ideas, top contributors."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.core.settings import settings
from backend.app.db.session import get_db
from backend.app.models.engagement import (
    AchievementsResponse,
    IdeaSummaryResponse,
    TopContributorResponse,
    UserCreate,
    UserResponse,
)
from backend.app.services import idea_repository, user_repository
from backend.app.services.transactions import RetryBackoff, commit_with_retry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users")


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)) -> UserResponse:
    user = commit_with_retry(
        db,
        lambda: user_repository.register_user(
            db, email=body.email, display_name=body.display_name, role=body.role,
        ),
        operation_name="register_user",
        attempts=settings.write_retry_attempts,
        backoff=RetryBackoff.from_settings(settings),
    )
    return UserResponse.model_validate(user)


# Declared before the /{user_id} routes so the literal path wins.
@router.get("/top-contributors", response_model=list[TopContributorResponse])
def top_contributors(db: Session = Depends(get_db)) -> list[TopContributorResponse]:
    """Current top contributors as flagged by the last ranking run."""
    return [
        TopContributorResponse.model_validate(user)
        for user in user_repository.list_top_contributors(db)
    ]


@router.get("/{user_id}/achievements", response_model=AchievementsResponse)
def achievements(user_id: int, db: Session = Depends(get_db)) -> AchievementsResponse:
    return AchievementsResponse.model_validate(user_repository.get_by_id(db, user_id))


@router.get("/{user_id}/ideas", response_model=list[IdeaSummaryResponse])
def user_ideas(user_id: int, db: Session = Depends(get_db)) -> list[IdeaSummaryResponse]:
    user_repository.get_by_id(db, user_id)
    return [
        IdeaSummaryResponse.model_validate(idea)
        for idea in idea_repository.list_user_ideas(db, user_id)
    ]
