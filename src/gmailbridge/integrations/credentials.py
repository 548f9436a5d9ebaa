# Credential Store: OAuth client id/secret/redirect URI from settings or credentials.json.
# Created: 2026-10-19

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gmailbridge.config import Settings
from gmailbridge.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientCredentials:
    """OAuth 2.0 client registration."""

    client_id: str
    client_secret: str
    redirect_uri: str


class CredentialStore:
    """Loads :class:`ClientCredentials`.

    ``CLIENT_ID`` / ``CLIENT_SECRET`` / ``REDIRECT_URI`` win when all three are
    set. Otherwise the Google client-secrets file is read; the client may sit
    under ``web`` or ``installed`` or at the top level.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def load(self) -> ClientCredentials:
        s = self.settings
        if s.client_id and s.client_secret and s.redirect_uri:
            logger.debug("Using client credentials from environment")
            return ClientCredentials(s.client_id, s.client_secret, s.redirect_uri)
        return self._load_file(s.credentials_file)

    @staticmethod
    def _load_file(path: Path) -> ClientCredentials:
        try:
            data = json.loads(path.read_text())
        except FileNotFoundError:
            raise ConfigError(
                f"OAuth credentials file not found: {path}. "
                "Download it from Google Cloud Console or set CLIENT_ID, "
                "CLIENT_SECRET and REDIRECT_URI."
            ) from None
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not read credentials file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Credentials file {path} must contain a JSON object")

        client: Any = data.get("web") or data.get("installed") or data
        if not isinstance(client, dict):
            raise ConfigError(f"Credentials file {path} has no client section")

        redirect_uri = client.get("redirect_uri")
        uris = client.get("redirect_uris")
        if not redirect_uri and isinstance(uris, list) and uris:
            redirect_uri = uris[0]

        fields = {
            "client_id": client.get("client_id"),
            "client_secret": client.get("client_secret"),
            "redirect_uri": redirect_uri,
        }
        missing = [k for k, v in fields.items() if not isinstance(v, str) or not v]
        if missing:
            raise ConfigError(
                f"Credentials file {path} is missing required field(s): {', '.join(missing)}"
            )

        logger.debug("Client credentials loaded from %s", path)
        return ClientCredentials(**fields)
