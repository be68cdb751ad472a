"""Structured logging baseline and event taxonomy.

Event taxonomy (minimum set)::

    app_start                — application process starting
    config_loaded            — settings resolved successfully
    db_initialized           — engine created, DB path resolved
    db_migration_started     — alembic upgrade beginning
    db_migration_succeeded   — alembic upgrade completed
    db_migration_failed      — alembic upgrade error (with traceback)
    db_write_failed          — repository write error
    user_registered          — new user created
    idea_created             — idea persisted and owner counter bumped
    idea_like_toggled        — like added or removed
    idea_rated               — rating added or replaced
    scores_recomputed        — ranking run persisted scores
    top_contributors_updated — flag set changed
    ranking_job_failed       — ranking run rolled back
    ranking_job_skipped      — another run holds the lease
    event_broadcast          — realtime event handed to observers

Rules:
    - Never log e-mail addresses or free-text content.
    - Log record IDs and content *lengths*, not raw content.

Usage::

    from backend.app.core.logging import log_event
    log_event(logger, "info", "idea_created", idea_id=7, owner_id=3)
"""

import logging
import sys

# Canonical event names for grep-ability and observability.
EVENT_APP_START = "app_start"
EVENT_CONFIG_LOADED = "config_loaded"
EVENT_DB_INITIALIZED = "db_initialized"
EVENT_DB_MIGRATION_STARTED = "db_migration_started"
EVENT_DB_MIGRATION_SUCCEEDED = "db_migration_succeeded"
EVENT_DB_MIGRATION_FAILED = "db_migration_failed"
EVENT_DB_WRITE_FAILED = "db_write_failed"
EVENT_USER_REGISTERED = "user_registered"
EVENT_IDEA_CREATED = "idea_created"
EVENT_IDEA_LIKE_TOGGLED = "idea_like_toggled"
EVENT_IDEA_RATED = "idea_rated"
EVENT_SCORES_RECOMPUTED = "scores_recomputed"
EVENT_TOP_CONTRIBUTORS_UPDATED = "top_contributors_updated"
EVENT_RANKING_JOB_FAILED = "ranking_job_failed"
EVENT_RANKING_JOB_SKIPPED = "ranking_job_skipped"
EVENT_BROADCAST = "event_broadcast"


_HANDLER_ATTR = "_ideahub"


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logger with a simple structured format.

    Safe to call multiple times — only adds the handler once and
    restores it if Alembic's ``fileConfig()`` removes it.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for h in root.handlers:
        if getattr(h, _HANDLER_ATTR, False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)


def log_event(
    logger: logging.Logger,
    level: str,
    event_name: str,
    **kwargs: object,
) -> None:
    """Emit a structured log line with consistent ``event_name: key=value`` format.

    Parameters
    ----------
    logger:
        The logger instance (provides the component via ``logger.name``).
    level:
        Log level name — ``"info"``, ``"warning"``, ``"error"``, or ``"exception"``.
    event_name:
        Canonical event name (e.g. ``"idea_like_toggled"``).
    **kwargs:
        Arbitrary key-value pairs appended as ``key=value``.
    """
    parts = " ".join(f"{k}={v}" for k, v in kwargs.items())
    message = f"{event_name}: {parts}" if parts else event_name
    log_fn = getattr(logger, level, logger.info)
    log_fn(message)
