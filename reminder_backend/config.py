"""
Configuration and settings for the reminder backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_SHEETS_ID = "your_google_sheets_id_here"
INSECURE_PASSWORDS = {"demo-password-change-me", "your-secret-password"}
PLACEHOLDER_SESSION_SECRET = "your-session-secret-key"
MIN_SESSION_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    environment: str = Field(default="development", alias="NODE_ENV")

    # Google Sheets
    google_sheets_id: Optional[str] = Field(default=None)
    google_application_credentials: Optional[str] = Field(default=None)
    thoughts_sheet_name: str = Field(default="Thoughts")
    archive_sheet_name: str = Field(default="ArchivedThoughts")
    request_timeout_seconds: float = Field(default=10.0)
    max_retries: int = Field(default=3, ge=1)
    cache_ttl_seconds: float = Field(default=30.0, ge=0)

    # Auth / session cookie
    auth_password: Optional[str] = Field(default=None)
    session_secret: Optional[str] = Field(default=None)
    session_cookie: str = Field(default="diary.sid")
    session_max_age_seconds: int = Field(default=7 * 24 * 60 * 60)
    cookie_secure: bool = Field(default=False)
    cors_origin: Optional[str] = Field(default=None)

    # Journal
    thoughts_per_page: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=50, ge=1)
    max_content_length: int = Field(default=10000, ge=1)
    timezone: str = Field(default="Asia/Shanghai")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, alias="REMINDER_USE_IN_MEMORY_BACKENDS"
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def has_password(self) -> bool:
        return bool(self.auth_password) and self.auth_password not in INSECURE_PASSWORDS

    @property
    def has_session_secret(self) -> bool:
        return (
            bool(self.session_secret)
            and self.session_secret != PLACEHOLDER_SESSION_SECRET
            and len(self.session_secret) >= MIN_SESSION_SECRET_LENGTH
        )

    def cors_origins(self) -> list[str]:
        if not self.cors_origin:
            return [] if self.is_production else ["*"]
        if self.cors_origin == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    def config_problems(self) -> tuple[list[str], list[str]]:
        """Return (missing, insecure) setting names."""
        missing: list[str] = []
        insecure: list[str] = []
        if not self.use_in_memory_backends:
            if not self.google_sheets_id or self.google_sheets_id == PLACEHOLDER_SHEETS_ID:
                missing.append("GOOGLE_SHEETS_ID")
            if not self.google_application_credentials:
                missing.append("GOOGLE_APPLICATION_CREDENTIALS")
        if not self.has_session_secret:
            name = f"SESSION_SECRET (must be at least {MIN_SESSION_SECRET_LENGTH} characters)"
            # In-memory mode falls back to a per-process random secret.
            (insecure if self.use_in_memory_backends else missing).append(name)
        if not self.has_password:
            insecure.append("AUTH_PASSWORD")
        return missing, insecure


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
