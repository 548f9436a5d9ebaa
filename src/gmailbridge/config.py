# Settings: environment / .env configuration for gmailbridge.
# Created: 2026-10-19
#
# The four legacy keys (CLIENT_ID, CLIENT_SECRET, REDIRECT_URI, REFRESH_TOKEN)
# are read unprefixed; everything else uses the GMAILBRIDGE_ prefix.

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get/create the config directory (~/.gmailbridge)."""
    d = Path.home() / ".gmailbridge"
    d.mkdir(parents=True, exist_ok=True)
    return d


def _default_token_file() -> Path:
    return get_config_dir() / "token.json"


def _default_upload_dir() -> Path:
    return get_config_dir() / "uploads"


class Settings(BaseSettings):
    """gmailbridge settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_prefix="GMAILBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 3001
    log_level: str = "INFO"

    # OAuth client
    client_id: str | None = Field(
        default=None, validation_alias=AliasChoices("CLIENT_ID", "client_id")
    )
    client_secret: str | None = Field(
        default=None, validation_alias=AliasChoices("CLIENT_SECRET", "client_secret")
    )
    redirect_uri: str | None = Field(
        default=None, validation_alias=AliasChoices("REDIRECT_URI", "redirect_uri")
    )
    refresh_token: str | None = Field(
        default=None, validation_alias=AliasChoices("REFRESH_TOKEN", "refresh_token")
    )
    credentials_file: Path = Path("credentials.json")
    token_file: Path = Field(default_factory=_default_token_file)

    # Consent
    consent_mode: Literal["console", "callback"] = "console"
    consent_timeout: float | None = 300.0  # seconds; None or 0 waits forever

    # Remote endpoints
    auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url: str = "https://oauth2.googleapis.com/token"
    gmail_base_url: str = "https://gmail.googleapis.com/gmail/v1/users/me"
    http_timeout: float = 15.0

    # Outgoing mail defaults for POST /sendEmail
    default_to: str | None = None
    default_from: str | None = None
    default_subject: str = "Email from gmailbridge"
    default_body: str = "This email was sent using the Gmail API."

    # Uploads
    upload_dir: Path = Field(default_factory=_default_upload_dir)

    @classmethod
    def load(cls) -> Settings:
        """Build settings from the current environment."""
        return cls()


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
        logger.debug("Settings loaded (consent_mode=%s)", _settings.consent_mode)
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
