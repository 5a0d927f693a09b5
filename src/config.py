"""
Configuration Management Module

Runtime settings for the payments engine, read from PAYMENTS_* environment
variables or a local .env file via pydantic-settings.
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class PaymentsSettings(BaseSettings):
    """Payments engine configuration"""

    model_config = SettingsConfigDict(
        env_prefix="PAYMENTS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging configuration
    log_level: str = "WARNING"
    log_format: str = "%(levelname)s: %(message)s"

    # Processing configuration
    strict: bool = False  # Abort on the first malformed row or rejected transaction
    log_rejections: bool = True  # Log each ledger rejection, otherwise only count it

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level


# Global configuration instance, loaded on first use
settings: Optional[PaymentsSettings] = None


def get_settings() -> PaymentsSettings:
    """Get global configuration instance"""
    global settings
    if settings is None:
        settings = PaymentsSettings()
    return settings


def reload_settings() -> PaymentsSettings:
    """Reload configuration from environment"""
    global settings
    settings = PaymentsSettings()
    return settings
