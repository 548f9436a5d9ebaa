# Token Cache: file-based OAuth token persistence (single account, single file).
# Created: 2026-10-19

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from gmailbridge.errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass
class Token:
    """OAuth 2.0 token set for the authenticated account."""

    access_token: str
    refresh_token: str | None = None
    token_type: str = "Bearer"
    expiry: datetime | None = None  # UTC
    scopes: list[str] = field(default_factory=list)

    def expires_within(self, margin: timedelta) -> bool:
        """True when the token has an expiry and it falls inside *margin* from now."""
        if self.expiry is None:
            return False
        return self.expiry <= datetime.now(UTC) + margin

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": self.token_type,
            "expiry": self.expiry.isoformat() if self.expiry else None,
            "scopes": list(self.scopes),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Token:
        """Build a token from its stored form.

        Also accepts the layout written by the googleapis Node client
        (``scope`` as a space-separated string, ``expiry_date`` in epoch ms).
        """
        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("access_token missing")

        expiry: datetime | None = None
        if data.get("expiry"):
            expiry = datetime.fromisoformat(data["expiry"])
            if expiry.tzinfo is None:
                expiry = expiry.replace(tzinfo=UTC)
        elif data.get("expiry_date"):
            expiry = datetime.fromtimestamp(int(data["expiry_date"]) / 1000, tz=UTC)

        scopes = data.get("scopes")
        if scopes is None:
            scopes = data.get("scope") or ""
        if isinstance(scopes, str):
            scopes = scopes.split()

        return cls(
            access_token=access_token,
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type") or "Bearer",
            expiry=expiry,
            scopes=list(scopes),
        )


class TokenCache:
    """Stores one :class:`Token` as JSON at a fixed path.

    The file is chmod 0600 (owner-only read/write). Writes go through a
    temporary file and ``os.replace`` so a reader never sees a partial file;
    concurrent writers are last-write-wins.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> Token | None:
        """Load the cached token. Returns None if nothing has been stored yet."""
        try:
            raw = self.path.read_text()
        except FileNotFoundError:
            logger.debug("Token file not found: %s", self.path)
            return None
        except OSError as e:
            raise PersistenceError(f"Could not read token file {self.path}: {e}") from e

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("not a JSON object")
            return Token.from_dict(data)
        except (ValueError, TypeError) as e:
            logger.warning("Ignoring malformed token file %s: %s", self.path, e)
            return None

    def write(self, token: Token) -> None:
        """Persist *token*, replacing any previous one."""
        payload = json.dumps(token.to_dict(), indent=2)
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w") as f:
                f.write(payload)
            os.chmod(tmp_name, stat.S_IRUSR | stat.S_IWUSR)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Could not write token file {self.path}: {e}") from e
        logger.info("Token stored to %s", self.path)

    def delete(self) -> bool:
        """Remove the cached token. Returns True if a file was deleted."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(f"Could not delete token file {self.path}: {e}") from e
        logger.info("Deleted cached token %s", self.path)
        return True
