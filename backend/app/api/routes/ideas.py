"""Idea routes: list, submit, like/unlike toggle, rate.

Writes go through :func:`commit_with_retry`; the realtime event is
published only once the transaction has committed.
"""

import logging
import uuid
from collections.abc import Callable
from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.errors import normalize_db_error
from backend.app.core.settings import settings
from backend.app.db.session import get_db
from backend.app.models.engagement import (
    IdeaCreate,
    IdeaResponse,
    LikeRequest,
    RateRequest,
)
from backend.app.models.idea import Idea
from backend.app.services import idea_repository
from backend.app.services.notifier import broadcaster
from backend.app.services.transactions import RetryBackoff, commit_with_retry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/ideas")

T = TypeVar("T")


def _to_response(idea: Idea) -> IdeaResponse:
    return IdeaResponse.model_validate(idea)


def _run_write(db: Session, operation: Callable[[], T], operation_name: str) -> T:
    correlation_id = str(uuid.uuid4())
    try:
        return commit_with_retry(
            db,
            operation,
            operation_name=operation_name,
            attempts=settings.write_retry_attempts,
            backoff=RetryBackoff.from_settings(settings),
        )
    except SQLAlchemyError as exc:
        error = normalize_db_error(
            exc, operation=operation_name, correlation_id=correlation_id,
        )
        raise HTTPException(status_code=error.http_status, detail=error.user_message)


@router.get("", response_model=list[IdeaResponse])
def list_ideas(db: Session = Depends(get_db)) -> list[IdeaResponse]:
    return [_to_response(idea) for idea in idea_repository.list_ideas(db)]


@router.post("", response_model=IdeaResponse, status_code=status.HTTP_201_CREATED)
def submit_idea(body: IdeaCreate, db: Session = Depends(get_db)) -> IdeaResponse:
    idea = _run_write(
        db,
        lambda: idea_repository.create_idea(
            db, title=body.title, description=body.description, user_id=body.user_id,
        ),
        "create_idea",
    )
    response = _to_response(idea)
    broadcaster.publish("newIdea", response.model_dump(mode="json"))
    return response


@router.post("/{idea_id}/like", response_model=IdeaResponse)
def like_idea(idea_id: int, body: LikeRequest, db: Session = Depends(get_db)) -> IdeaResponse:
    """Toggle the caller's like: liking twice returns the idea to unliked."""
    result = _run_write(
        db,
        lambda: idea_repository.toggle_like(db, idea_id=idea_id, user_id=body.user_id),
        "toggle_like",
    )
    response = _to_response(result.idea)
    broadcaster.publish("likeIdea", response.model_dump(mode="json"))
    return response


@router.post("/{idea_id}/rate", response_model=IdeaResponse)
def rate_idea(idea_id: int, body: RateRequest, db: Session = Depends(get_db)) -> IdeaResponse:
    result = _run_write(
        db,
        lambda: idea_repository.rate_idea(
            db, idea_id=idea_id, user_id=body.user_id, rating_value=body.rating_value,
        ),
        "rate_idea",
    )
    return _to_response(result.idea)
