"""
Application configuration settings.
"""

from typing import Optional, Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from adaptive_exam.schemas.items import TestPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Adaptive Exam"
    ENV: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Default adaptive test policy, used when a bank has no policy of its own.
    # Values mirror the bank editor defaults: 8-18 items, stabilization when the
    # last 3 theta estimates lie within 0.25 logits, starting at level 3.
    DEFAULT_MIN_ITEMS: int = Field(default=8, ge=1)
    DEFAULT_MAX_ITEMS: int = Field(default=18, ge=1)
    DEFAULT_STABILIZATION_DELTA: float = Field(default=0.25, ge=0.0)
    DEFAULT_STABILIZATION_WINDOW: int = Field(default=3, ge=1)
    DEFAULT_START_LEVEL: int = Field(default=3, ge=1, le=5)
    # Optional SEM target; None disables the precision stopping criterion
    DEFAULT_SEM_TARGET: Optional[float] = Field(default=None, ge=0.0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_default_policy(self) -> Self:
        """Validate that the default item bounds are consistent."""
        if self.DEFAULT_MIN_ITEMS > self.DEFAULT_MAX_ITEMS:
            raise ValueError(
                f"DEFAULT_MIN_ITEMS ({self.DEFAULT_MIN_ITEMS}) must not exceed "
                f"DEFAULT_MAX_ITEMS ({self.DEFAULT_MAX_ITEMS})"
            )
        return self

    def default_policy(self) -> TestPolicy:
        """Build the default TestPolicy from these settings."""
        return TestPolicy(
            min_items=self.DEFAULT_MIN_ITEMS,
            max_items=self.DEFAULT_MAX_ITEMS,
            stabilization_delta=self.DEFAULT_STABILIZATION_DELTA,
            stabilization_window=self.DEFAULT_STABILIZATION_WINDOW,
            start_level=self.DEFAULT_START_LEVEL,
            sem_target=self.DEFAULT_SEM_TARGET,
        )


settings = Settings()
