"""Tests for structured logging and the event taxonomy."""

import logging

import pytest
from backend.app.core.logging import (
    EVENT_BROADCAST,
    EVENT_DB_WRITE_FAILED,
    EVENT_IDEA_CREATED,
    EVENT_IDEA_LIKE_TOGGLED,
    EVENT_IDEA_RATED,
    EVENT_RANKING_JOB_FAILED,
    EVENT_RANKING_JOB_SKIPPED,
    EVENT_SCORES_RECOMPUTED,
    EVENT_TOP_CONTRIBUTORS_UPDATED,
    EVENT_USER_REGISTERED,
    log_event,
    setup_logging,
)
from backend.app.db.base import Base
from backend.app.models.idea import Idea  # noqa: F401
from backend.app.models.idea_report import IdeaReport  # noqa: F401
from backend.app.models.job_lease import JobLease  # noqa: F401
from backend.app.models.user import User
from backend.app.services.idea_repository import create_idea, toggle_like
from backend.app.services.scoring import ScoreWeights
from backend.app.services.top_contributors import recompute_top_contributors
from backend.app.services.user_repository import register_user
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker


@pytest.fixture()
def db() -> Session:  # type: ignore[misc]
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


# ---------------------------------------------------------------------------
# log_event format
# ---------------------------------------------------------------------------


class TestLogEventFormat:
    def test_event_name_and_pairs(self, caplog: pytest.LogCaptureFixture) -> None:
        test_logger = logging.getLogger("test.component")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "idea_created", idea_id=7, owner_id=3)
        assert "idea_created: idea_id=7 owner_id=3" in caplog.text

    def test_bare_event(self, caplog: pytest.LogCaptureFixture) -> None:
        test_logger = logging.getLogger("test.component")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "app_start")
        assert caplog.records[-1].getMessage() == "app_start"

    def test_component_is_logger_name(self, caplog: pytest.LogCaptureFixture) -> None:
        test_logger = logging.getLogger("backend.app.api.routes.ideas")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "idea_created")
        assert caplog.records[-1].name == "backend.app.api.routes.ideas"

    @pytest.mark.parametrize(
        ("level", "expected"),
        [("warning", "WARNING"), ("error", "ERROR"), ("info", "INFO")],
    )
    def test_level_honored(
        self, caplog: pytest.LogCaptureFixture, level: str, expected: str,
    ) -> None:
        test_logger = logging.getLogger("test.levels")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, level, "some_event")
        assert caplog.records[-1].levelname == expected

    def test_unknown_level_falls_back_to_info(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.levels")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "chatty", "some_event")
        assert caplog.records[-1].levelname == "INFO"


class TestSetupLogging:
    def test_handler_added_once(self) -> None:
        setup_logging()
        setup_logging()
        tagged = [h for h in logging.getLogger().handlers if getattr(h, "_ideahub", False)]
        assert len(tagged) == 1


# ---------------------------------------------------------------------------
# Services emit taxonomy events without free text
# ---------------------------------------------------------------------------


class TestServiceEvents:
    def test_registration_does_not_log_email(
        self, db: Session, caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.INFO):
            register_user(
                db, email="private.person@example.com", display_name="P", role="Student",
            )
        assert EVENT_USER_REGISTERED in caplog.text
        assert "private.person" not in caplog.text

    def test_idea_created_logs_lengths_not_content(
        self, db: Session, caplog: pytest.LogCaptureFixture,
    ) -> None:
        user = register_user(db, email="a@example.com", display_name="A", role="Student")
        with caplog.at_level(logging.INFO):
            create_idea(
                db,
                title="Secret merger plan",
                description="Do not share outside the board",
                user_id=user.id,
            )
        assert EVENT_IDEA_CREATED in caplog.text
        assert "title_len=18" in caplog.text
        assert "Secret merger" not in caplog.text
        assert "board" not in caplog.text

    def test_like_toggle_logged(
        self, db: Session, caplog: pytest.LogCaptureFixture,
    ) -> None:
        owner = register_user(db, email="o@example.com", display_name="O", role="Student")
        fan = register_user(db, email="f@example.com", display_name="F", role="Student")
        idea = create_idea(db, title="t", description="d", user_id=owner.id)
        db.commit()
        with caplog.at_level(logging.INFO):
            toggle_like(db, idea_id=idea.id, user_id=fan.id)
        assert f"{EVENT_IDEA_LIKE_TOGGLED}: idea_id={idea.id}" in caplog.text
        assert "liked=True" in caplog.text

    def test_ranking_logs_scores_and_flag_changes(
        self, db: Session, caplog: pytest.LogCaptureFixture,
    ) -> None:
        db.add(
            User(
                email="s@example.com", display_name="S", role="Student",
                total_ideas=3, total_likes=3, total_ratings=3,
            )
        )
        db.commit()
        with caplog.at_level(logging.INFO):
            recompute_top_contributors(
                db, weights=ScoreWeights.from_percentages(ideas=50, likes=30, rating=20),
            )
        assert f"{EVENT_SCORES_RECOMPUTED}: scored=1 updated=1" in caplog.text
        assert EVENT_TOP_CONTRIBUTORS_UPDATED in caplog.text


# ---------------------------------------------------------------------------
# Event taxonomy
# ---------------------------------------------------------------------------


class TestEventTaxonomy:
    def test_event_names(self) -> None:
        assert EVENT_USER_REGISTERED == "user_registered"
        assert EVENT_IDEA_CREATED == "idea_created"
        assert EVENT_IDEA_LIKE_TOGGLED == "idea_like_toggled"
        assert EVENT_IDEA_RATED == "idea_rated"
        assert EVENT_SCORES_RECOMPUTED == "scores_recomputed"
        assert EVENT_TOP_CONTRIBUTORS_UPDATED == "top_contributors_updated"
        assert EVENT_RANKING_JOB_FAILED == "ranking_job_failed"
        assert EVENT_RANKING_JOB_SKIPPED == "ranking_job_skipped"
        assert EVENT_BROADCAST == "event_broadcast"
        assert EVENT_DB_WRITE_FAILED == "db_write_failed"
