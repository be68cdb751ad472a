"""Application settings loaded from environment / .env file.

Config precedence (highest to lowest):
    1. Environment variables
    2. ``.env`` file in project root
    3. Defaults defined in this module

Score weights are whole-number percentages.  The legacy variable names
``WEIGHTIDEAS``, ``WEIGHTLIKES``, ``WEIGHTRATING`` and ``UPDATE_SCHEDULE``
are accepted alongside the canonical field names.

The ranking schedule is a cron expression evaluated in the server's local
time zone: ``0 9 * * *`` fires at 09:00 server time.
"""

from pathlib import Path

from croniter import croniter
from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.app.services.scoring import ScoreWeights

# Project root is three levels up from this file (backend/app/core/settings.py)
_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_DEFAULT_DB_PATH = str(_PROJECT_ROOT / "data" / "app.db")
_DEFAULT_SCHEDULE = "0 * * * *"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    api_host: str = "127.0.0.1"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Database — override via APP_DB_PATH env var
    app_db_path: str = _DEFAULT_DB_PATH

    @property
    def database_url(self) -> str:
        """SQLite connection URL derived from ``app_db_path``."""
        return f"sqlite:///{self.app_db_path}"

    # Top-contributor ranking
    top_contributor_schedule: str = Field(
        default=_DEFAULT_SCHEDULE,
        validation_alias=AliasChoices("top_contributor_schedule", "update_schedule"),
    )
    weight_ideas: float = Field(
        default=50, ge=0, validation_alias=AliasChoices("weight_ideas", "weightideas"),
    )
    weight_likes: float = Field(
        default=30, ge=0, validation_alias=AliasChoices("weight_likes", "weightlikes"),
    )
    weight_rating: float = Field(
        default=20, ge=0, validation_alias=AliasChoices("weight_rating", "weightrating"),
    )
    top_contributor_count: int = Field(default=3, ge=1)
    top_contributor_min_score: float = 1.0
    score_recompute_enabled: bool = True
    job_lease_seconds: int = Field(default=300, ge=1)

    # Bounded optimistic retries on contended idea rows, with jittered
    # exponential backoff between attempts
    write_retry_attempts: int = Field(default=5, ge=1)
    write_retry_initial_backoff_ms: int = Field(default=20, ge=0)
    write_retry_max_backoff_ms: int = Field(default=500, ge=0)
    write_retry_jitter_ms: int = Field(default=40, ge=0)

    @property
    def score_weights(self) -> ScoreWeights:
        """Scoring weights as fractions (percent / 100)."""
        return ScoreWeights.from_percentages(
            ideas=self.weight_ideas,
            likes=self.weight_likes,
            rating=self.weight_rating,
        )

    @field_validator("top_contributor_schedule")
    @classmethod
    def _validate_schedule(cls, value: str) -> str:
        value = value.strip()
        if not croniter.is_valid(value):
            raise ValueError(
                f"Invalid cron expression '{value}' for top_contributor_schedule."
            )
        return value

    @model_validator(mode="after")
    def _validate_db_path(self) -> "Settings":
        """Ensure the DB path parent directory exists or can be created."""
        parent = Path(self.app_db_path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = (
                f"Cannot create database directory '{parent}': {exc}. "
                f"Set APP_DB_PATH to a writable location."
            )
            raise ValueError(msg) from exc
        return self

    def safe_dump(self) -> dict[str, object]:
        """Return a settings dict that is safe to log."""
        return {
            "api_host": self.api_host,
            "api_port": self.api_port,
            "debug": self.debug,
            "log_level": self.log_level,
            "app_db_path": self.app_db_path,
            "top_contributor_schedule": self.top_contributor_schedule,
            "weights": (self.weight_ideas, self.weight_likes, self.weight_rating),
            "top_contributor_count": self.top_contributor_count,
            "score_recompute_enabled": self.score_recompute_enabled,
        }


settings = Settings()
