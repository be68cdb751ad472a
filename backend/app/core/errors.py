"""Domain error taxonomy and centralized error normalization.

Services raise the typed :class:`DomainError` subclasses below.  The HTTP
layer turns them, and any unexpected exception, into a
:class:`NormalizedError` so that:

- Responses share one structure (user_message, error_category, retryable)
- No stack traces reach the client
- Detailed info is logged for debugging
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import OperationalError

from backend.app.core.logging import EVENT_DB_WRITE_FAILED, log_event

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------


class DomainError(Exception):
    """Base class for errors surfaced by the engagement and ranking services."""

    error_category = "domain"
    http_status = 400
    retryable = False


class ValidationError(DomainError):
    """Malformed input: rating out of range, missing field, unknown role."""

    error_category = "validation"
    http_status = 422


class NotFoundError(DomainError):
    """A referenced user or idea does not exist."""

    error_category = "not_found"
    http_status = 404


class ForbiddenError(DomainError):
    """The caller's role may not perform the operation."""

    error_category = "forbidden"
    http_status = 403


class ConflictError(DomainError):
    """Optimistic retries exhausted, or a uniqueness rule was violated."""

    error_category = "conflict"
    http_status = 409
    retryable = True


class TransientStorageError(DomainError):
    """Retryable storage failure (database locked or busy)."""

    error_category = "db"
    http_status = 503
    retryable = True


def handle_operational_error(exc: OperationalError, operation: str) -> None:
    """Raise :class:`TransientStorageError` for lock/busy errors, else re-raise."""
    msg = str(exc).lower()
    if "locked" in msg or "busy" in msg:
        logger.warning(
            "db_write_failed: operation=%s reason=database_locked (retryable)",
            operation,
        )
        raise TransientStorageError(
            f"Database is locked during '{operation}'. "
            f"Another writer may be active. Please retry."
        ) from exc
    raise exc


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NormalizedError:
    """Standardized error representation for API responses."""

    user_message: str
    error_category: str
    retryable: bool
    http_status: int = 500


def normalize_domain_error(exc: DomainError) -> NormalizedError:
    """Map a typed domain error to its response form."""
    return NormalizedError(
        user_message=str(exc) or exc.error_category,
        error_category=exc.error_category,
        retryable=exc.retryable,
        http_status=exc.http_status,
    )


def normalize_db_error(
    exc: Exception,
    *,
    operation: str,
    correlation_id: str | None = None,
) -> NormalizedError:
    """Normalize a database error into a user-friendly message."""
    exc_msg = str(exc).lower()

    if "locked" in exc_msg or "busy" in exc_msg:
        error = NormalizedError(
            user_message=(
                "The database is temporarily busy. Please try again in a moment."
            ),
            error_category="db",
            retryable=True,
            http_status=503,
        )
    elif "readonly" in exc_msg or "read-only" in exc_msg or "permission" in exc_msg:
        error = NormalizedError(
            user_message=(
                "A database permission error occurred. "
                "Check APP_DB_PATH points to a writable location."
            ),
            error_category="db",
            retryable=False,
            http_status=500,
        )
    else:
        error = NormalizedError(
            user_message="A database error occurred. Please try again.",
            error_category="db",
            retryable=True,
            http_status=500,
        )

    log_event(
        logger, "error", EVENT_DB_WRITE_FAILED,
        operation=operation,
        error_category=error.error_category,
        retryable=error.retryable,
        correlation_id=correlation_id or "N/A",
        detail=str(exc),
    )
    return error


def normalize_validation_error(
    messages: list[str],
) -> NormalizedError:
    """Normalize validation errors into a single user-friendly message."""
    joined = "; ".join(messages)
    return NormalizedError(
        user_message=f"Validation failed: {joined}",
        error_category="validation",
        retryable=False,
        http_status=422,
    )


def normalize_unknown_error(
    exc: Exception,
    *,
    operation: str,
    correlation_id: str | None = None,
) -> NormalizedError:
    """Normalize an unexpected error into a safe generic message."""
    log_event(
        logger, "exception", "unknown_error",
        operation=operation,
        error_category="unknown",
        correlation_id=correlation_id or "N/A",
        detail=f"{type(exc).__name__}: {exc}",
    )
    return NormalizedError(
        user_message="An unexpected error occurred. Please try again.",
        error_category="unknown",
        retryable=False,
        http_status=500,
    )
