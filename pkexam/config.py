"""
Configuration for the exam simulator.

Values come from environment variables (or a ``.env`` file). The only
required one is ``ANTHROPIC_API_KEY``; when it is missing the app still
starts and every provider call fails at call time.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


QUESTIONS_PER_SET = 90
BATCH_SIZE = 5
SET_COUNT = 6


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ─── Content provider ───────────────────────────────────────────────
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key used for question and analysis requests",
    )
    model: str = Field(
        default="claude-haiku-4-5-20251001",
        validation_alias="PKEXAM_MODEL",
        description="Claude model used for generation",
    )
    max_tokens: int = Field(default=8000, validation_alias="PKEXAM_MAX_TOKENS")
    max_attempts: int = Field(default=3, ge=1, validation_alias="PKEXAM_MAX_ATTEMPTS")
    retry_delay: float = Field(default=1.5, ge=0, validation_alias="PKEXAM_RETRY_DELAY")

    # ─── Exam shape ─────────────────────────────────────────────────────
    questions_per_set: int = Field(default=QUESTIONS_PER_SET, ge=1, validation_alias="PKEXAM_QUESTIONS_PER_SET")
    batch_size: int = Field(default=BATCH_SIZE, ge=1, validation_alias="PKEXAM_BATCH_SIZE")
    set_count: int = Field(default=SET_COUNT, ge=1, validation_alias="PKEXAM_SET_COUNT")
    pass_mark: int = Field(default=75, ge=0, le=100, validation_alias="PKEXAM_PASS_MARK")

    log_level: str = Field(default="INFO", validation_alias="PKEXAM_LOG_LEVEL")


@lru_cache
def get_settings() -> Settings:
    return Settings()
