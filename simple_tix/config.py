"""
Configuration for the order engine.
Uses Pydantic Settings; every field can be set from a TIX_* environment variable.
"""

import logging
from decimal import Decimal
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Order engine settings."""
    model_config = SettingsConfigDict(env_prefix="TIX_", env_file=".env", extra="ignore")

    # Don't notify the player when a resting order fills
    suppress_fill_notifications: bool = False
    log_level: str = "INFO"
    starting_cash: Decimal = Decimal("1000000")
    commission: Decimal = Decimal("0")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize to an upper-case logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("starting_cash", "commission")
    @classmethod
    def validate_non_negative(cls, v: Decimal) -> Decimal:
        """Reject negative amounts."""
        if v < 0:
            raise ValueError("Must not be negative")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Configure root logging at the configured level."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
