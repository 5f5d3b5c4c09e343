"""
Configuration Management

Centralized configuration for the studio booking engine using Pydantic
Settings for type safety and environment variable integration.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Load environment variables from .env file if it exists
env_path = Path(".") / ".env"
load_dotenv(dotenv_path=env_path)


_SETTINGS_CONFIG = {
    "env_file": ".env",
    "env_file_encoding": "utf-8",
    "case_sensitive": True,
    "extra": "ignore",
}


class DatabaseSettings(BaseSettings):
    """Database configuration settings"""

    DATABASE_URL: str = Field(default="sqlite:///./studio_booking.db")

    # Connection pool settings (ignored by SQLite)
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=20)
    DB_POOL_RECYCLE: int = Field(default=3600)
    DB_ECHO: bool = Field(default=False)

    model_config = _SETTINGS_CONFIG

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


class LoggingSettings(BaseSettings):
    """Logging configuration settings"""

    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text
    LOG_FILE: Optional[str] = Field(default=None)
    ENABLE_STRUCTURED_LOGGING: bool = Field(default=True)
    LOG_SQL_QUERIES: bool = Field(default=False)

    model_config = _SETTINGS_CONFIG

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v


def _default_operating_hours() -> Dict[str, Dict[str, object]]:
    weekday = {"open": "09:00", "close": "18:00", "is_open": True}
    return {
        "monday": dict(weekday),
        "tuesday": dict(weekday),
        "wednesday": dict(weekday),
        "thursday": dict(weekday),
        "friday": dict(weekday),
        "saturday": {"open": "09:00", "close": "17:00", "is_open": True},
        "sunday": {"open": "10:00", "close": "16:00", "is_open": False},
    }


class BookingSettings(BaseSettings):
    """Booking & pricing engine rules"""

    DEFAULT_DP_PERCENTAGE: int = Field(default=50)
    RESCHEDULE_LEAD_DAYS: int = Field(default=3)
    SLOT_INTERVAL_MINUTES: int = Field(default=30)
    ACTIVE_RESERVATION_STATUSES: List[str] = Field(
        default=["pending", "confirmed", "in_progress"]
    )

    # Flat tax rate in percent; currently zero
    TAX_RATE: Decimal = Field(default=Decimal("0"))
    MONEY_QUANTUM: Decimal = Field(default=Decimal("1"))
    CURRENCY: str = Field(default="IDR")
    STUDIO_TIMEZONE: str = Field(default="Asia/Jakarta")

    BOOKING_CODE_PREFIX: str = Field(default="STD")
    BOOKING_ISOLATION_LEVEL: Optional[str] = Field(default="SERIALIZABLE")

    # Keep used_count untouched when a confirmed booking is cancelled
    RELEASE_DISCOUNT_ON_CONFIRMED_CANCEL: bool = Field(default=False)

    # Gateway fees added to the customer charge instead of absorbed by the studio
    CUSTOMER_PAYS_FEES: bool = Field(default=False)
    GATEWAY_FEE_TYPE: str = Field(default="percentage")
    GATEWAY_FEE_PERCENTAGE: Decimal = Field(default=Decimal("0"), ge=0)
    GATEWAY_FEE_AMOUNT: Decimal = Field(default=Decimal("0"), ge=0)

    DEFAULT_OPERATING_HOURS: Dict[str, Dict[str, object]] = Field(
        default_factory=_default_operating_hours
    )

    model_config = _SETTINGS_CONFIG

    @field_validator("DEFAULT_DP_PERCENTAGE")
    @classmethod
    def validate_dp_percentage(cls, v):
        if not 0 < v <= 100:
            raise ValueError("Deposit percentage must be between 1 and 100")
        return v

    @field_validator("SLOT_INTERVAL_MINUTES")
    @classmethod
    def validate_slot_interval(cls, v):
        if v <= 0:
            raise ValueError("Slot interval must be positive")
        return v


class Settings(BaseSettings):
    """Main application settings"""

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # Project information
    PROJECT_NAME: str = Field(default="Studio Booking Engine")
    PROJECT_VERSION: str = Field(default="1.0.0")
    API_V1_STR: str = Field(default="/api/v1")
    CORS_ORIGINS: List[str] = Field(default=["*"])

    # Include all sub-settings
    database: DatabaseSettings = DatabaseSettings()
    logging: LoggingSettings = LoggingSettings()
    booking: BookingSettings = BookingSettings()

    model_config = _SETTINGS_CONFIG

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        valid_envs = ["development", "staging", "production", "testing"]
        if v not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}")
        return v

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_testing(self) -> bool:
        return self.ENVIRONMENT == "testing"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings"""
    return Settings()


# Global settings instance
settings = get_settings()
