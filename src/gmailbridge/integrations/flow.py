# Authorization Flow: cached token / refresh / interactive consent, then the action.
# Created: 2026-10-19
#
# States: NEED_CONSENT → (consent + exchange + store) → AUTHORIZED
#         HAVE_TOKEN   → (refresh if about to expire)  → AUTHORIZED
# Token acquisition is single-flight per client id: concurrent requests share
# one in-flight task, so at most one consent is ever pending per identity.

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import TypeVar

from gmailbridge.config import Settings
from gmailbridge.errors import AuthError, PersistenceError
from gmailbridge.integrations.consent import CallbackPrompt, ConsentPrompt, ConsolePrompt
from gmailbridge.integrations.credentials import ClientCredentials, CredentialStore
from gmailbridge.integrations.oauth import SCOPES, OAuthManager
from gmailbridge.integrations.token_store import Token, TokenCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Tokens expiring sooner than this are refreshed before use.
REFRESH_MARGIN = timedelta(seconds=60)


class AuthState(str, Enum):
    NEED_CONSENT = "need_consent"
    HAVE_TOKEN = "have_token"
    AUTHORIZED = "authorized"


@dataclass(frozen=True)
class AuthorizedClient:
    """Client registration plus a currently valid token, for one request."""

    credentials: ClientCredentials
    token: Token

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"{self.token.token_type} {self.token.access_token}"}


AuthorizedAction = Callable[[AuthorizedClient], Awaitable[T]]


@dataclass
class _InFlight:
    task: asyncio.Task[Token]
    waiters: int = 0


class AuthorizationFlow:
    """Obtains a valid token and runs an :data:`AuthorizedAction` with it.

    ``ConfigError`` and ``AuthError`` propagate to the caller untouched; a
    failure to persist a new token is only logged.
    """

    def __init__(
        self,
        settings: Settings,
        credential_store: CredentialStore | None = None,
        cache: TokenCache | None = None,
        oauth: OAuthManager | None = None,
        prompt: ConsentPrompt | None = None,
    ):
        self.settings = settings
        self.credential_store = credential_store or CredentialStore(settings)
        self.cache = cache or TokenCache(settings.token_file)
        self.oauth = oauth or OAuthManager(settings)
        self.prompt = prompt or _default_prompt(settings)
        self._inflight: dict[str, _InFlight] = {}

    async def run(self, action: AuthorizedAction[T]) -> T:
        """Authorize, then invoke *action* exactly once."""
        client = await self.authorize()
        return await action(client)

    async def authorize(self) -> AuthorizedClient:
        credentials = self.credential_store.load()
        token = await self._single_flight(credentials)
        return AuthorizedClient(credentials=credentials, token=token)

    def is_authorized(self) -> bool:
        """True when a token is cached (it may still need a refresh)."""
        return self.cache.read() is not None

    async def shutdown(self) -> None:
        """Cancel every in-flight acquisition, including pending consents."""
        tasks = [entry.task for entry in self._inflight.values()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        if isinstance(self.prompt, CallbackPrompt):
            self.prompt.cancel_all()

    # -- single flight --------------------------------------------------

    async def _single_flight(self, credentials: ClientCredentials) -> Token:
        key = credentials.client_id
        entry = self._inflight.get(key)
        if entry is not None and (entry.task.done() or entry.task.cancelling()):
            self._forget(key, entry)
            entry = None
        if entry is None:
            task = asyncio.get_running_loop().create_task(self._acquire(credentials))
            entry = _InFlight(task)
            self._inflight[key] = entry
            task.add_done_callback(lambda _t, e=entry: self._forget(key, e))
        else:
            logger.debug("Joining in-flight authorization for %s", key)

        entry.waiters += 1
        try:
            return await asyncio.shield(entry.task)
        finally:
            entry.waiters -= 1
            if entry.waiters == 0 and not entry.task.done():
                logger.info("Last waiter left; cancelling authorization for %s", key)
                entry.task.cancel()
                # A cancelled acquisition is never joined.
                self._forget(key, entry)

    def _forget(self, key: str, entry: _InFlight) -> None:
        if self._inflight.get(key) is entry:
            del self._inflight[key]

    # -- state machine ----------------------------------------------------

    async def _acquire(self, credentials: ClientCredentials) -> Token:
        token = self.cache.read()
        state = AuthState.HAVE_TOKEN if token is not None else AuthState.NEED_CONSENT
        logger.debug("Authorization entry state: %s", state.value)

        if token is not None and token.expires_within(REFRESH_MARGIN):
            token = await self._refresh_expired(credentials, token)

        if token is None and self.settings.refresh_token:
            token = await self._refresh_configured(credentials)

        if token is None:
            token = await self._consent(credentials)

        logger.debug("Authorization state: %s", AuthState.AUTHORIZED.value)
        return token

    async def _refresh_expired(self, credentials: ClientCredentials, token: Token) -> Token | None:
        if not token.refresh_token:
            logger.warning("Cached token expired and has no refresh token; consent required")
            return None
        try:
            fresh = await self.oauth.refresh(
                credentials, token.refresh_token, token.scopes or SCOPES
            )
        except AuthError as e:
            logger.warning("Token refresh rejected, falling back to consent: %s", e)
            return None
        self._store(fresh)
        return fresh

    async def _refresh_configured(self, credentials: ClientCredentials) -> Token | None:
        logger.info("No cached token; minting one from the configured refresh token")
        try:
            token = await self.oauth.refresh(credentials, self.settings.refresh_token or "")
        except AuthError as e:
            logger.warning("Configured refresh token rejected, falling back to consent: %s", e)
            return None
        self._store(token)
        return token

    async def _consent(self, credentials: ClientCredentials) -> Token:
        state = secrets.token_urlsafe(16)
        auth_url = self.oauth.get_auth_url(credentials, SCOPES, state=state)
        timeout = self.settings.consent_timeout or None
        try:
            code = await asyncio.wait_for(self.prompt.request_code(auth_url, state), timeout)
        except TimeoutError:
            raise AuthError(
                f"Timed out after {timeout:g}s waiting for an authorization code"
            ) from None

        token = await self.oauth.exchange_code(credentials, code, SCOPES)
        self._store(token)
        return token

    def _store(self, token: Token) -> None:
        try:
            self.cache.write(token)
        except PersistenceError as e:
            logger.warning("Token not persisted, continuing with in-memory token: %s", e)


def _default_prompt(settings: Settings) -> ConsentPrompt:
    if settings.consent_mode == "callback":
        return CallbackPrompt()
    return ConsolePrompt()

