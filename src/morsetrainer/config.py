"""
Configuration settings for the Morse trainer.

Uses Pydantic Settings for environment variable management with .env file support.
All values have defaults so a missing or partial environment still starts a session.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrainerSettings(BaseSettings):
    """Trainer settings loaded from `MORSETRAINER_*` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MORSETRAINER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Progression
    # ========================================
    learned_threshold: int = Field(
        default=2,
        ge=1,
        description="Mastery score at or above which a symbol counts as learned",
    )
    consecutive_correct: int = Field(
        default=3,
        ge=1,
        description="Correct answers in a row needed before a new symbol joins the pool",
    )
    initial_pool_size: int = Field(
        default=3,
        ge=1,
        description="Number of leading course symbols always in play",
    )
    min_queue_depth: int = Field(
        default=3,
        ge=2,
        description="Minimum number of words kept in the word queue",
    )
    hint_cycle_length: int = Field(
        default=4,
        ge=1,
        description="Consecutive-mistake cycle over which hint tiers repeat",
    )

    # ========================================
    # Content & Storage
    # ========================================
    course: str = Field(
        default="alphabet",
        description="Course id to open when none is chosen explicitly",
    )
    db_path: Path = Field(
        default=Path(".morsetrainer") / "progress.db",
        description="SQLite progress database location",
    )

    # ========================================
    # Hint playback timing (seconds)
    # ========================================
    announce_delay: float = Field(default=0.75, ge=0)
    morse_element_gap: float = Field(default=0.3, ge=0)
    morse_element_max: float = Field(default=0.601, ge=0)
    mnemonic_delay: float = Field(default=0.3, ge=0)

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(default="WARNING")

    @property
    def score_limit(self) -> int:
        """Absolute bound of the mastery score range."""
        return self.learned_threshold + 2


def load_settings(**overrides: object) -> TrainerSettings:
    """Build settings, falling back to defaults when the environment is invalid."""
    try:
        return TrainerSettings(**overrides)
    except ValidationError as exc:
        logger.warning("Invalid trainer settings, using defaults: {}", exc)
        return TrainerSettings.model_construct()


@lru_cache(maxsize=1)
def get_settings() -> TrainerSettings:
    """Get cached settings instance."""
    return load_settings()
