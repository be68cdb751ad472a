"""Programmatic Alembic runner used at application startup."""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from backend.app.core.logging import (
    EVENT_DB_MIGRATION_FAILED,
    EVENT_DB_MIGRATION_STARTED,
    EVENT_DB_MIGRATION_SUCCEEDED,
    log_event,
    setup_logging,
)
from backend.app.db.engine import engine

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[3]


class MigrationError(Exception):
    """Raised when ``alembic upgrade`` fails; the message names the revisions."""


def _alembic_config() -> Config:
    cfg = Config(str(_PROJECT_ROOT / "alembic.ini"))
    # Scripts resolve against the project root, whatever the working directory
    cfg.set_main_option("script_location", str(_PROJECT_ROOT / "alembic"))
    return cfg


def get_current_revision() -> str | None:
    """Revision stamped in the database, or None for a fresh file."""
    with engine.connect() as conn:
        return MigrationContext.configure(conn).get_current_revision()


def get_head_revision() -> str:
    """Newest revision under ``alembic/versions``."""
    head = ScriptDirectory.from_config(_alembic_config()).get_current_head()
    if head is None:
        raise MigrationError("No migration scripts found under alembic/versions/.")
    return head


def check_schema_current() -> bool:
    """True when the database is stamped at head; warns otherwise."""
    current, head = get_current_revision(), get_head_revision()
    if current == head:
        return True
    logger.warning(
        "db_schema_drift: current=%s head=%s (run 'alembic upgrade head')",
        current,
        head,
    )
    return False


def run_migrations(target: str = "head") -> None:
    """Upgrade the database to *target* before the app serves requests.

    A database already at head is left untouched.  Alembic's ``env.py``
    runs ``fileConfig()``, which replaces root handlers, so structured
    logging is re-applied afterwards.
    """
    current = get_current_revision()
    head = get_head_revision()
    log_event(logger, "info", EVENT_DB_MIGRATION_STARTED, current=current, head=head)
    if target == "head" and current == head:
        log_event(logger, "info", EVENT_DB_MIGRATION_SUCCEEDED, detail="already_at_head")
        return

    try:
        command.upgrade(_alembic_config(), target)
    except Exception as exc:
        logger.exception(
            "%s: current=%s target=%s error=%s",
            EVENT_DB_MIGRATION_FAILED,
            current,
            target,
            exc,
        )
        raise MigrationError(
            f"Migration failed (current={current}, target={target}): {exc}. "
            f"Check alembic/versions/ for the failing migration."
        ) from exc
    finally:
        setup_logging()
    log_event(logger, "info", EVENT_DB_MIGRATION_SUCCEEDED, new_head=get_current_revision())
