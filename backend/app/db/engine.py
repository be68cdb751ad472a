"""SQLite engine for the users/ideas store."""

import logging
from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

from backend.app.core.logging import EVENT_DB_INITIALIZED
from backend.app.core.settings import settings

logger = logging.getLogger(__name__)

# Seconds a writer waits on SQLite's database lock before "database is locked"
SQLITE_BUSY_TIMEOUT = 15

_db_path = Path(settings.app_db_path)


def get_resolved_db_path() -> Path:
    """Return the resolved absolute path to the SQLite database file."""
    return _db_path.resolve()


def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:  # type: ignore[no-untyped-def]
    # Likes and ratings cascade with their idea; SQLite needs this per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_sqlite_engine(url: str, *, echo: bool = False, **kwargs: object) -> Engine:
    """Build an engine whose sessions may cross the request threadpool.

    Every connection gets foreign-key enforcement and a busy timeout, so
    concurrent like/rate writers queue on the lock instead of failing
    immediately.
    """
    connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
    new_engine = create_engine(url, echo=echo, connect_args=connect_args, **kwargs)
    event.listen(new_engine, "connect", _enable_foreign_keys)
    return new_engine


engine = create_sqlite_engine(settings.database_url, echo=settings.debug)

logger.info(
    "%s: path=%s url=%s",
    EVENT_DB_INITIALIZED,
    get_resolved_db_path(),
    settings.database_url,
)


class DatabaseInitError(Exception):
    """Raised when the database cannot be initialized."""


def init_db() -> None:
    """Open the database once at startup.

    Raises :class:`DatabaseInitError` naming the path and the setting to
    change when the file cannot be created or opened.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        msg = (
            f"Cannot open database at '{get_resolved_db_path()}': {exc}. "
            f"Check file permissions or set APP_DB_PATH to a writable location."
        )
        logger.error("db_init_failed: %s", msg)
        raise DatabaseInitError(msg) from exc
    logger.info("db_init_verified: path=%s", get_resolved_db_path())
