"""Lightweight repeating-job scheduler using stdlib threading.

Runs a callable on a fixed interval or a cron expression in a daemon
thread.  Exceptions in the job are logged but never propagate, so the app
keeps running and the next tick still fires.  A tick that arrives while
the previous run is still executing is skipped.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from datetime import datetime

from croniter import croniter
from sqlalchemy.orm import sessionmaker

from backend.app.core.logging import (
    EVENT_RANKING_JOB_FAILED,
    EVENT_RANKING_JOB_SKIPPED,
    log_event,
)
from backend.app.core.settings import Settings, settings
from backend.app.db.session import SessionLocal, session_scope
from backend.app.services.job_lease import release_lease, try_acquire_lease
from backend.app.services.notifier import EventBroadcaster, broadcaster
from backend.app.services.top_contributors import (
    RankingResult,
    recompute_top_contributors,
)

logger = logging.getLogger(__name__)

TOP_CONTRIBUTORS_JOB = "top_contributors"


class RepeatingJob:
    """Execute *func* every *interval_seconds*, or per a cron *schedule*."""

    def __init__(
        self,
        func: Callable[[], object],
        interval_seconds: float | None = None,
        *,
        schedule: str | None = None,
        name: str | None = None,
    ) -> None:
        if (interval_seconds is None) == (schedule is None):
            raise ValueError("Provide exactly one of interval_seconds or schedule")
        if schedule is not None and not croniter.is_valid(schedule):
            raise ValueError(f"Invalid cron expression: {schedule!r}")
        self._func = func
        self._interval = interval_seconds
        self._schedule = schedule
        self._name = name or getattr(func, "__name__", "job")
        self._stop_event = threading.Event()
        self._run_lock = threading.Lock()
        self._timer: threading.Timer | None = None

    @property
    def name(self) -> str:
        return self._name

    def next_delay(self, now: datetime | None = None) -> float:
        """Seconds until the next tick.  Cron schedules follow server local time."""
        if self._schedule is None:
            return float(self._interval)  # type: ignore[arg-type]
        now = now or datetime.now().astimezone()
        next_fire = croniter(self._schedule, now).get_next(datetime)
        return max((next_fire - now).total_seconds(), 0.0)

    def run_now(self) -> bool:
        """Run the job in the calling thread unless a run is in progress.

        Returns False when the run was skipped because of overlap.
        """
        if not self._run_lock.acquire(blocking=False):
            log_event(logger, "warning", "repeating_job_overlap_skipped", job=self._name)
            return False
        try:
            self._func()
        except Exception:
            logger.exception("repeating_job_error: job=%s", self._name)
        finally:
            self._run_lock.release()
        return True

    def _run(self) -> None:
        if self._stop_event.is_set():
            return
        self.run_now()
        # Schedule next run regardless of success/failure
        self._schedule_next()

    def _schedule_next(self) -> None:
        if self._stop_event.is_set():
            return
        self._timer = threading.Timer(self.next_delay(), self._run)
        self._timer.daemon = True
        self._timer.start()

    def start(self) -> None:
        """Start the repeating job (first execution at the next tick)."""
        logger.info(
            "repeating_job_started: job=%s %s",
            self._name,
            f"schedule='{self._schedule}'" if self._schedule else f"interval={self._interval}s",
        )
        self._stop_event.clear()
        self._schedule_next()

    def stop(self) -> None:
        """Signal the job to stop and cancel any pending timer."""
        self._stop_event.set()
        if self._timer is not None:
            self._timer.cancel()
        logger.info("repeating_job_stopped: job=%s", self._name)


# ---------------------------------------------------------------------------
# Top-contributor ranking run
# ---------------------------------------------------------------------------


def _rank_in_transaction(
    session_factory: sessionmaker, config: Settings,
) -> RankingResult | None:
    try:
        with session_scope(session_factory) as db:
            result = recompute_top_contributors(
                db,
                weights=config.score_weights,
                top_n=config.top_contributor_count,
                min_score=config.top_contributor_min_score,
            )
    except Exception as exc:
        log_event(
            logger, "exception", EVENT_RANKING_JOB_FAILED,
            error=f"{type(exc).__name__}: {exc}",
        )
        return None
    return result


def run_top_contributor_ranking(
    session_factory: sessionmaker = SessionLocal,
    *,
    config: Settings = settings,
    events: EventBroadcaster = broadcaster,
    holder: str | None = None,
) -> RankingResult | None:
    """One lease-guarded, all-or-nothing ranking run.

    Returns the run summary, or None when skipped (lease held elsewhere)
    or failed (logged, rolled back, previous flags untouched).
    """
    holder = holder or f"{TOP_CONTRIBUTORS_JOB}-{uuid.uuid4().hex[:12]}"

    lease_db = session_factory()
    try:
        if not try_acquire_lease(
            lease_db, TOP_CONTRIBUTORS_JOB, holder, ttl_seconds=config.job_lease_seconds,
        ):
            log_event(logger, "info", EVENT_RANKING_JOB_SKIPPED, reason="lease_held")
            return None

        try:
            result = _rank_in_transaction(session_factory, config)
        finally:
            release_lease(lease_db, TOP_CONTRIBUTORS_JOB, holder)
    finally:
        lease_db.close()

    if result is not None and result.changed:
        events.publish("topContributors", {"user_ids": list(result.winners)})
    return result


# ---------------------------------------------------------------------------
# Module-level scheduler instance
# ---------------------------------------------------------------------------

_ranking_job: RepeatingJob | None = None


def start_top_contributor_scheduler(schedule: str) -> RepeatingJob:
    """Start the background ranking job on *schedule* (cron expression)."""
    global _ranking_job  # noqa: PLW0603
    if _ranking_job is not None:
        _ranking_job.stop()
    _ranking_job = RepeatingJob(
        run_top_contributor_ranking, schedule=schedule, name=TOP_CONTRIBUTORS_JOB,
    )
    _ranking_job.start()
    return _ranking_job


def stop_top_contributor_scheduler() -> None:
    """Stop the background ranking job if running."""
    global _ranking_job  # noqa: PLW0603
    if _ranking_job is not None:
        _ranking_job.stop()
        _ranking_job = None
