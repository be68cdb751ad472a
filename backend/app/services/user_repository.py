"""Repository for users: registration, lookups and the top-contributor read.

All methods operate on a caller-supplied SQLAlchemy ``Session`` so that
transaction boundaries remain under the caller's control.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from backend.app.core.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    handle_operational_error,
)
from backend.app.core.logging import EVENT_USER_REGISTERED, log_event
from backend.app.models.user import VALID_ROLES, User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def register_user(
    db: Session,
    *,
    email: str,
    display_name: str,
    role: str,
) -> User:
    """Create a user with zeroed counters.

    Raises:
        ValidationError: Blank name/email or unknown role.
        ConflictError: The e-mail (case-insensitive) is already registered.
    """
    email = normalize_email(email)
    display_name = display_name.strip()
    if not email or not display_name:
        raise ValidationError("email and display_name are required")
    if role not in VALID_ROLES:
        raise ValidationError(
            f"Unknown role '{role}'. Expected one of: {', '.join(VALID_ROLES)}"
        )

    if get_by_email(db, email) is not None:
        raise ConflictError("A user with this email already exists")

    user = User(email=email, display_name=display_name, role=role)
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError("A user with this email already exists") from exc
    except OperationalError as exc:
        handle_operational_error(exc, "register_user")
    log_event(logger, "info", EVENT_USER_REGISTERED, user_id=user.id, role=role)
    return user


def get_by_id(db: Session, user_id: int) -> User:
    """Fetch a user by primary key.

    Raises:
        NotFoundError: If no user with *user_id* exists.
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User not found: id={user_id}")
    return user


def get_by_email(db: Session, email: str) -> User | None:
    return db.execute(
        select(User).where(func.lower(User.email) == normalize_email(email))
    ).scalar_one_or_none()


def list_top_contributors(db: Session) -> list[User]:
    """Return the users flagged by the last ranking run.

    Reads the materialized flag only; never triggers a recompute.
    Ordered by score (highest first), ties by ascending id.
    """
    return list(
        db.execute(
            select(User)
            .where(User.top_contributor.is_(True))
            .order_by(User.score.desc(), User.id.asc())
        ).scalars()
    )
