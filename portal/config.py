"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key for signing JWT tokens", min_length=1
    )
    access_token_expire_minutes: int = Field(
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    app_timezone: str = Field(
        default="UTC",
        description="IANA timezone (or UTC+HH:MM offset) used to store and render dates",
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending communication emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of communication emails",
        min_length=3,
    )
    communication_email_enabled: bool = Field(
        default=False,
        description="Also deliver sent communications by email (best effort)",
    )
    notification_ttl_days: int = Field(
        default=30,
        description="Days a notification stays visible before it expires",
        gt=0,
    )
    notification_message_max_length: int = Field(
        default=500,
        description="Maximum length of the notification message copied from the body",
        gt=0,
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        description="Origins allowed to call the API from a browser",
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings"]
