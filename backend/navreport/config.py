# backend/navreport/config.py
"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation:
- ENVIRONMENT: Runtime mode (development, test, production)
- LOG_LEVEL / LOG_FORMAT: Logging verbosity and output format
- REPORTING_TIMEZONE: IANA zone used to resolve named periods and
  to convert timestamp inputs to calendar dates
- IMPLAUSIBLE_RETURN_THRESHOLD: Sanity guard for trailing returns (percent)

Configuration is validated on application startup. Invalid configuration
will raise a ValueError with a descriptive message.

Usage:
    from navreport.config import settings

    tz = settings.reporting_zone
"""
from decimal import Decimal
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from navreport.services.constants import (
    DEFAULT_REPORTING_TIMEZONE,
    IMPLAUSIBLE_RETURN_THRESHOLD,
)


# Find the .env file in project root (parent of backend/)
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables:
        - ENVIRONMENT: Runtime environment (development, test, production)
        - APP_NAME: Application name (default: "NAV Reporting Engine")
        - LOG_LEVEL: Logging level (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")
        - REPORTING_TIMEZONE: IANA time zone (default: "Asia/Kolkata")
        - IMPLAUSIBLE_RETURN_THRESHOLD: percent (default: 10000)
    """

    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment (development, test, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format; use json for log aggregation"
    )

    app_name: str = "NAV Reporting Engine"

    # =========================================================================
    # REPORTING
    # =========================================================================
    reporting_timezone: str = Field(
        default=DEFAULT_REPORTING_TIMEZONE,
        description="IANA time zone for named periods and timestamp inputs"
    )
    implausible_return_threshold: Decimal = Field(
        default=IMPLAUSIBLE_RETURN_THRESHOLD,
        gt=0,
        description="Trailing returns whose magnitude exceeds this percent are dropped"
    )

    # =========================================================================
    # CORS
    # =========================================================================
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Allowed CORS origins (JSON list in env var)"
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow credentials in CORS requests"
    )
    cors_allow_methods: list[str] = Field(
        default=["*"],
        description="Allowed HTTP methods for CORS"
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        description="Allowed HTTP headers for CORS"
    )

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_reporting_timezone(self) -> "Settings":
        """Reject time zones the zoneinfo database does not know."""
        try:
            ZoneInfo(self.reporting_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(
                f"REPORTING_TIMEZONE '{self.reporting_timezone}' is not a valid "
                "IANA time zone. Example: Asia/Kolkata, Europe/London, UTC"
            ) from e
        return self

    @property
    def reporting_zone(self) -> ZoneInfo:
        """Resolved reporting time zone."""
        return ZoneInfo(self.reporting_timezone)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


# Create single instance
settings = Settings()
