# Error taxonomy shared by the integrations and the HTTP layer.
# Created: 2026-10-19

from __future__ import annotations


class GmailBridgeError(Exception):
    """Base class for every failure surfaced to the HTTP layer."""

    status_code: int = 500


class ConfigError(GmailBridgeError):
    """Client credentials are missing or malformed."""


class AuthError(GmailBridgeError):
    """Consent or token exchange was rejected (or timed out)."""

    status_code = 502


class PersistenceError(GmailBridgeError):
    """The token file could not be read or written."""


class RemoteError(GmailBridgeError):
    """The Gmail API rejected a call or could not be reached."""

    status_code = 502

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
