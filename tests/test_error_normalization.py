"""Tests for the domain error taxonomy and error normalization."""

import logging

import pytest
from backend.app.core.errors import (
    ConflictError,
    DomainError,
    ForbiddenError,
    NormalizedError,
    NotFoundError,
    TransientStorageError,
    ValidationError,
    normalize_db_error,
    normalize_domain_error,
    normalize_unknown_error,
    normalize_validation_error,
)

# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------


class TestTaxonomy:
    @pytest.mark.parametrize(
        ("error_cls", "status", "category", "retryable"),
        [
            (ValidationError, 422, "validation", False),
            (NotFoundError, 404, "not_found", False),
            (ForbiddenError, 403, "forbidden", False),
            (ConflictError, 409, "conflict", True),
            (TransientStorageError, 503, "db", True),
        ],
    )
    def test_mapping(
        self, error_cls: type[DomainError], status: int, category: str, retryable: bool,
    ) -> None:
        error = normalize_domain_error(error_cls("details for the caller"))
        assert error.http_status == status
        assert error.error_category == category
        assert error.retryable is retryable
        assert error.user_message == "details for the caller"

    def test_all_share_base(self) -> None:
        for cls in (ValidationError, NotFoundError, ForbiddenError, ConflictError):
            assert issubclass(cls, DomainError)

    def test_empty_message_falls_back_to_category(self) -> None:
        assert normalize_domain_error(ForbiddenError()).user_message == "forbidden"


# ---------------------------------------------------------------------------
# Database errors
# ---------------------------------------------------------------------------


class TestDbErrorNormalization:
    def test_locked_is_retryable_503(self) -> None:
        error = normalize_db_error(Exception("database is locked"), operation="toggle_like")
        assert error.retryable is True
        assert error.http_status == 503
        assert "try again" in error.user_message.lower()

    def test_readonly_not_retryable(self) -> None:
        error = normalize_db_error(
            Exception("attempt to write a readonly database"), operation="rate_idea",
        )
        assert error.retryable is False
        assert "APP_DB_PATH" in error.user_message

    def test_generic_error_hides_detail(self) -> None:
        error = normalize_db_error(
            Exception("Traceback (most recent call last): users.email"), operation="x",
        )
        assert "Traceback" not in error.user_message
        assert "users.email" not in error.user_message

    def test_logs_category_and_correlation(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.ERROR):
            normalize_db_error(
                Exception("fail"), operation="create_idea", correlation_id="corr-9",
            )
        assert "db_write_failed" in caplog.text
        assert "operation=create_idea" in caplog.text
        assert "correlation_id=corr-9" in caplog.text

    def test_default_correlation(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR):
            normalize_db_error(Exception("fail"), operation="create_idea")
        assert "correlation_id=N/A" in caplog.text


# ---------------------------------------------------------------------------
# Validation and unknown errors
# ---------------------------------------------------------------------------


class TestValidationNormalization:
    def test_messages_joined(self) -> None:
        error = normalize_validation_error(["title is required", "rating out of range"])
        assert error.http_status == 422
        assert error.retryable is False
        assert "title is required; rating out of range" in error.user_message


class TestUnknownErrorNormalization:
    def test_generic_safe_message(self) -> None:
        error = normalize_unknown_error(RuntimeError("idea 5 broke"), operation="x")
        assert "unexpected" in error.user_message.lower()
        assert "idea 5" not in error.user_message
        assert error.http_status == 500

    def test_detail_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR):
            normalize_unknown_error(RuntimeError("internal detail"), operation="op")
        assert "unknown_error" in caplog.text
        assert "RuntimeError: internal detail" in caplog.text


class TestNormalizedErrorStructure:
    def test_is_frozen(self) -> None:
        error = NormalizedError(user_message="m", error_category="db", retryable=True)
        with pytest.raises(AttributeError):
            error.user_message = "changed"  # type: ignore[misc]

    def test_default_http_status(self) -> None:
        error = NormalizedError(user_message="m", error_category="unknown", retryable=False)
        assert error.http_status == 500
