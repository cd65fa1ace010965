"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.schemas.issues import CATEGORY_VALUES, Category

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_V1_PREFIX: str = "/api/v1"

    # Review categories selected at startup (JSON list in env, e.g. '["security","quality"]')
    REVIEW_CATEGORIES: list[Category] = list(CATEGORY_VALUES)
    # Status thresholds: High severity at or above FAIL → fail; below LOW → warning
    REVIEW_FAIL_CONFIDENCE_THRESHOLD: int = 70
    REVIEW_LOW_CONFIDENCE_THRESHOLD: int = 50

    # Results listing
    SHOW_PASSED_REVIEWS: bool = True
    SHOW_ONLY_FILES_WITH_ISSUES: bool = False

    # Analysis backend (optional; required only for POST /api/v1/reviews/run)
    ANALYSIS_BACKEND_URL: str | None = None
    ANALYSIS_BACKEND_TIMEOUT_SEC: float = 120.0
    ANALYSIS_BASE_BRANCH: str = "origin/main"
    # Ask the backend for a dry run (no LLM calls)
    ANALYSIS_DRY_RUN: bool = False

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = (v or "").strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}")
        return level

    @field_validator("REVIEW_CATEGORIES")
    @classmethod
    def validate_review_categories(cls, v: list[Category]) -> list[Category]:
        if not v:
            raise ValueError("REVIEW_CATEGORIES must name at least one category")
        # Canonical order, no duplicates.
        return [c for c in CATEGORY_VALUES if c in v]

    @field_validator("REVIEW_FAIL_CONFIDENCE_THRESHOLD", "REVIEW_LOW_CONFIDENCE_THRESHOLD")
    @classmethod
    def validate_confidence_threshold(cls, v: int) -> int:
        if v < 0 or v > 100:
            raise ValueError("Confidence thresholds must be between 0 and 100")
        return v

    @field_validator("ANALYSIS_BACKEND_URL")
    @classmethod
    def validate_analysis_backend_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        s = v.strip().rstrip("/").lower()
        if not (s.startswith("http://") or s.startswith("https://")):
            raise ValueError(
                "ANALYSIS_BACKEND_URL must use http or https (e.g. http://localhost:8765)"
            )
        return v.strip().rstrip("/")

    @field_validator("ANALYSIS_BACKEND_TIMEOUT_SEC")
    @classmethod
    def validate_analysis_backend_timeout(cls, v: float) -> float:
        if v <= 0 or v > 600:
            raise ValueError(
                "ANALYSIS_BACKEND_TIMEOUT_SEC must be greater than 0 and at most 600"
            )
        return v

    @field_validator("ANALYSIS_BASE_BRANCH")
    @classmethod
    def validate_base_branch(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("ANALYSIS_BASE_BRANCH must be set and non-empty")
        return v.strip()


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
