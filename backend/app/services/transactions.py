"""Commit a unit of work, retrying when a contended row changed underneath it."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from backend.app.core.errors import ConflictError, handle_operational_error
from backend.app.services.counter_store import StaleIdeaError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryBackoff:
    """Pause between conflicting attempts.

    Exponential from *initial_ms*, capped at *max_ms*, plus up to
    *jitter_ms* of random spread so colliding writers do not retry in step.
    """

    initial_ms: int = 20
    max_ms: int = 500
    jitter_ms: int = 40

    @classmethod
    def from_settings(cls, config: Any) -> RetryBackoff:
        return cls(
            initial_ms=config.write_retry_initial_backoff_ms,
            max_ms=config.write_retry_max_backoff_ms,
            jitter_ms=config.write_retry_jitter_ms,
        )

    def delay_seconds(self, attempt: int) -> float:
        """Delay after failed *attempt* (1-indexed)."""
        capped = min(self.initial_ms * 2 ** max(attempt - 1, 0), self.max_ms)
        jitter = random.randint(0, self.jitter_ms) if self.jitter_ms > 0 else 0
        return (capped + jitter) / 1000.0


def commit_with_retry(
    db: Session,
    operation: Callable[[], T],
    *,
    operation_name: str,
    attempts: int = 5,
    backoff: RetryBackoff | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run *operation* and commit; on a concurrency conflict roll back and rerun.

    Conflicts are a stale idea version or a unique-constraint race (two
    requests inserting the same like/rating).  Each attempt starts from a
    clean transaction, so partial work from a failed attempt never commits.
    Between attempts the caller's thread sleeps per *backoff*.

    Raises:
        ConflictError: Still conflicting after *attempts* tries.
        TransientStorageError: The database stayed locked/busy.
    """
    backoff = backoff or RetryBackoff()
    last_exc: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            result = operation()
            db.commit()
            return result
        except (StaleIdeaError, IntegrityError) as exc:
            db.rollback()
            last_exc = exc
            logger.warning(
                "write_conflict_retry: operation=%s attempt=%d/%d reason=%s",
                operation_name,
                attempt,
                attempts,
                type(exc).__name__,
            )
            if attempt < attempts:
                sleep(backoff.delay_seconds(attempt))
        except OperationalError as exc:
            db.rollback()
            handle_operational_error(exc, operation_name)
        except Exception:
            db.rollback()
            raise

    raise ConflictError(
        f"'{operation_name}' kept conflicting with concurrent updates "
        f"after {attempts} attempts. Please retry."
    ) from last_exc
