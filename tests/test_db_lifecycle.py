"""Tests for database initialization and lock handling.

Covers:
  - Missing data directory created automatically
  - init_db reports an actionable error when the file cannot be opened
  - Locked/busy SQLite errors surface as retryable TransientStorageError
"""

import logging
import os
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from backend.app.core.errors import TransientStorageError, handle_operational_error
from backend.app.core.settings import Settings
from backend.app.db.engine import DatabaseInitError, get_resolved_db_path, init_db
from backend.app.db.session import session_scope
from backend.app.services.counter_store import increment_user_counters
from backend.app.services.idea_repository import create_idea
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session


def _locked(statement: str = "UPDATE ...") -> OperationalError:
    return OperationalError(statement, params={}, orig=Exception("database is locked"))


class TestDirectoryCreation:
    def test_parent_dir_created_for_new_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = os.path.join(tmpdir, "new", "nested", "app.db")
            Settings(
                app_db_path=db_path,
                _env_file=None,  # type: ignore[call-arg]
            )
            assert Path(db_path).parent.exists()


class TestInitDb:
    def test_init_db_succeeds(self) -> None:
        init_db()

    def test_resolved_path_is_absolute(self) -> None:
        assert get_resolved_db_path().is_absolute()

    def test_failure_is_actionable(self) -> None:
        with patch(
            "backend.app.db.engine.engine.connect",
            side_effect=Exception("permission denied"),
        ):
            with pytest.raises(DatabaseInitError, match="APP_DB_PATH"):
                init_db()


class TestDatabaseLocked:
    def test_locked_is_transient(self) -> None:
        with pytest.raises(TransientStorageError, match="retry"):
            handle_operational_error(_locked(), "toggle_like")

    def test_busy_is_transient(self) -> None:
        exc = OperationalError("UPDATE ...", params={}, orig=Exception("database is busy"))
        with pytest.raises(TransientStorageError):
            handle_operational_error(exc, "rate_idea")

    def test_other_operational_errors_reraised(self) -> None:
        exc = OperationalError("INSERT ...", params={}, orig=Exception("disk I/O error"))
        with pytest.raises(OperationalError):
            handle_operational_error(exc, "create_idea")

    def test_transient_error_is_retryable(self) -> None:
        assert TransientStorageError.retryable is True
        assert TransientStorageError.http_status == 503

    def test_locked_logged_as_retryable(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            with pytest.raises(TransientStorageError):
                handle_operational_error(_locked(), "create_idea")
        assert "db_write_failed" in caplog.text
        assert "retryable" in caplog.text

    def test_create_idea_flush_locked(self) -> None:
        mock_db = MagicMock(spec=Session)
        mock_db.flush.side_effect = _locked("INSERT INTO ideas ...")
        with pytest.raises(TransientStorageError):
            create_idea(mock_db, title="t", description="d", user_id=1)

    def test_counter_update_locked(self) -> None:
        mock_db = MagicMock(spec=Session)
        mock_db.execute.side_effect = _locked()
        with pytest.raises(TransientStorageError):
            increment_user_counters(mock_db, 1, likes=1)


class TestSessionScope:
    def test_commits_on_success(self) -> None:
        mock_db = MagicMock(spec=Session)
        with session_scope(lambda: mock_db):  # type: ignore[arg-type]
            pass
        mock_db.commit.assert_called_once()
        mock_db.close.assert_called_once()

    def test_rolls_back_on_error(self) -> None:
        mock_db = MagicMock(spec=Session)
        with pytest.raises(RuntimeError):
            with session_scope(lambda: mock_db):  # type: ignore[arg-type]
                raise RuntimeError("boom")
        mock_db.rollback.assert_called_once()
        mock_db.commit.assert_not_called()
        mock_db.close.assert_called_once()
