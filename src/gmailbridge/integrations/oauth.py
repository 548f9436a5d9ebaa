# OAuth Manager: Google OAuth 2.0 consent URL, code exchange and token refresh.
# Created: 2026-10-19

from __future__ import annotations

import logging
import urllib.parse
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from gmailbridge.config import Settings
from gmailbridge.errors import AuthError, RemoteError
from gmailbridge.integrations.credentials import ClientCredentials
from gmailbridge.integrations.token_store import Token

logger = logging.getLogger(__name__)

# Requested on every consent; constant for the process lifetime.
SCOPES: tuple[str, ...] = (
    "https://mail.google.com/",
    "https://www.googleapis.com/auth/gmail.addons.current.action.compose",
    "https://www.googleapis.com/auth/gmail.compose",
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.send",
)


class OAuthManager:
    """Google OAuth 2.0 authorization code flow + token refresh.

    Talks to the token endpoint only; persistence is the caller's job.
    Rejections from the token endpoint raise :class:`AuthError`, transport
    failures raise :class:`RemoteError`.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self._transport = transport

    def get_auth_url(
        self,
        credentials: ClientCredentials,
        scopes: Sequence[str] = SCOPES,
        state: str = "",
    ) -> str:
        """Generate the consent URL the operator has to visit.

        Args:
            credentials: OAuth client registration.
            scopes: Scopes to request.
            state: Optional opaque value echoed back on the redirect.

        Returns:
            Authorization URL.
        """
        params = {
            "client_id": credentials.client_id,
            "redirect_uri": credentials.redirect_uri,
            "response_type": "code",
            "scope": " ".join(scopes),
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state

        return f"{self.settings.auth_url}?{urllib.parse.urlencode(params)}"

    async def exchange_code(
        self,
        credentials: ClientCredentials,
        code: str,
        scopes: Sequence[str] = SCOPES,
    ) -> Token:
        """Exchange an authorization code for access + refresh tokens."""
        data = await self._post_token(
            {
                "code": code,
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "redirect_uri": credentials.redirect_uri,
                "grant_type": "authorization_code",
            },
            what="code exchange",
        )
        token = self._token_from_response(data, refresh_token=None, scopes=scopes)
        logger.info("OAuth tokens obtained for client %s", credentials.client_id)
        return token

    async def refresh(
        self,
        credentials: ClientCredentials,
        refresh_token: str,
        scopes: Sequence[str] = SCOPES,
    ) -> Token:
        """Mint a new access token from *refresh_token*.

        The refresh token is kept unless the provider rotates it.
        """
        data = await self._post_token(
            {
                "refresh_token": refresh_token,
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "grant_type": "refresh_token",
            },
            what="token refresh",
        )
        token = self._token_from_response(data, refresh_token=refresh_token, scopes=scopes)
        logger.info("Refreshed OAuth token for client %s", credentials.client_id)
        return token

    async def _post_token(self, form: dict[str, str], what: str) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.http_timeout, transport=self._transport
            ) as client:
                resp = await client.post(self.settings.token_url, data=form)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as e:
            reason = _error_reason(e.response)
            raise AuthError(f"OAuth {what} rejected ({e.response.status_code}): {reason}") from e
        except httpx.RequestError as e:
            raise RemoteError(f"OAuth {what} failed: {e}") from e
        except ValueError as e:
            raise AuthError(f"OAuth {what} returned invalid JSON") from e

    @staticmethod
    def _token_from_response(
        data: dict[str, Any],
        refresh_token: str | None,
        scopes: Sequence[str],
    ) -> Token:
        if "access_token" not in data:
            raise AuthError("Token endpoint response has no access_token")

        expires_in = data.get("expires_in", 3600)
        granted = data.get("scope")
        return Token(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or refresh_token,
            token_type=data.get("token_type", "Bearer"),
            expiry=datetime.now(UTC) + timedelta(seconds=int(expires_in)),
            scopes=granted.split() if granted else list(scopes),
        )


def _error_reason(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        return body.get("error_description") or body.get("error") or str(body)
    return str(body)
