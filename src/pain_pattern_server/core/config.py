"""Application configuration."""

from datetime import tzinfo
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Allow extra env vars without error
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_prefix: str = Field(default="/api/v1", description="API prefix")
    max_entries_per_request: int = Field(
        default=20_000,
        description="Maximum pain entries accepted in a single analysis request",
    )

    # Analysis
    analysis_timezone: str | None = Field(
        default=None,
        description=(
            "IANA timezone used for calendar-day grouping and for naive timestamps "
            "(e.g., Europe/London). Defaults to each timestamp's own offset, UTC if naive."
        ),
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="Log renderer: json for services, console for interactive use",
    )

    @field_validator("analysis_timezone")
    @classmethod
    def _check_timezone(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    def get_timezone(self) -> tzinfo | None:
        """Get the configured analysis timezone, if any."""
        if self.analysis_timezone:
            return ZoneInfo(self.analysis_timezone)
        return None


# Global settings instance
settings = Settings()
