"""Runtime settings for the outage monitor.

Values come from (highest precedence first) constructor arguments,
environment variables prefixed with ``PDB_MONITOR_``, a ``.env`` file in
the working directory, and the defaults below.

Example:
    PDB_MONITOR_GMAIL_CLIENT_ID=...apps.googleusercontent.com
    PDB_MONITOR_GMAIL_REFRESH_TOKEN=1//0g...
    PDB_MONITOR_TIMEZONE=Asia/Dhaka
"""
from __future__ import annotations

from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Notification mails leave the PDB about this long after the event itself.
DEFAULT_TRANSMISSION_DELAY_SECONDS = 187


class Settings(BaseSettings):
    """Settings shared by the CLI, the mailbox provider and the store."""

    model_config = SettingsConfigDict(
        env_prefix="PDB_MONITOR_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    gmail_client_id: str | None = Field(default=None, description="Google OAuth client id")
    gmail_client_secret: SecretStr | None = Field(default=None, description="Google OAuth client secret")
    gmail_refresh_token: SecretStr | None = Field(default=None, description="Gmail OAuth refresh token")
    gmail_user: str = Field(default="me", description="Gmail user id to read from")
    gmail_label_name: str = Field(
        default="PDB Notifications",
        description="Label the PDB notification mails are filed under",
    )
    gmail_after: str = Field(
        default="2024/12/31",
        description="Only list messages after this date (Gmail YYYY/MM/DD search syntax)",
    )
    gmail_page_size: int = Field(default=500, ge=1, le=500)

    transmission_delay_seconds: int = Field(default=DEFAULT_TRANSMISSION_DELAY_SECONDS, ge=0)
    poll_interval_seconds: int = Field(default=300, ge=1)
    concurrency_limit: int = Field(default=20, ge=1)

    database_path: str = Field(default="outages.db", description="SQLite file, or ':memory:'")
    timezone: str = Field(
        default="Asia/Dhaka",
        description="Timezone used for calendar days and report windows",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {v}") from exc
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def gmail_configured(self) -> bool:
        return bool(
            self.gmail_client_id and self.gmail_client_secret and self.gmail_refresh_token
        )
