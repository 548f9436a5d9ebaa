# Consent prompts: how the operator is shown the consent URL and hands back the code.
# Created: 2026-10-19

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from gmailbridge.errors import AuthError

logger = logging.getLogger(__name__)


class ConsentPrompt(Protocol):
    """Out-of-band channel between the authorization flow and the operator."""

    async def request_code(self, auth_url: str, state: str) -> str:
        """Present *auth_url* and wait for the one-time authorization code."""
        ...


def _announce(auth_url: str) -> None:
    logger.warning("=" * 60)
    logger.warning("GMAIL AUTHORIZATION REQUIRED")
    logger.warning("Authorize this app by visiting this url:")
    logger.warning(auth_url)
    logger.warning("=" * 60)


class ConsolePrompt:
    """Reads the code from stdin.

    The blocking ``input()`` runs in a worker thread so other requests keep
    being served. At most one read is outstanding: a consent that is
    cancelled or times out leaves the read running, and the next consent
    picks it up, so the operator's next line is never lost. A line entered
    while no consent is waiting is discarded.
    """

    def __init__(self, reader: Callable[[str], str] = input):
        self._reader = reader
        self._read: asyncio.Task[str] | None = None

    async def request_code(self, auth_url: str, state: str) -> str:
        _announce(auth_url)
        if self._read is not None and self._read.done():
            self._discard(self._read)
            self._read = None
        if self._read is None:
            self._read = asyncio.get_running_loop().create_task(
                asyncio.to_thread(self._reader, "Enter the code from that page here: ")
            )

        read = self._read
        try:
            code = await asyncio.shield(read)
        except EOFError:
            raise AuthError("stdin closed before an authorization code was entered") from None
        finally:
            if read.done() and self._read is read:
                self._read = None
        code = code.strip()
        if not code:
            raise AuthError("No authorization code entered")
        return code

    @staticmethod
    def _discard(read: asyncio.Task[str]) -> None:
        if read.cancelled():
            return
        if read.exception() is None:
            logger.warning("Ignoring input entered while no authorization was pending")


class CallbackPrompt:
    """Waits for the provider to redirect the operator's browser to ``/oauth/callback``.

    Each pending consent is keyed by its ``state`` value; the callback route
    resolves it with :meth:`resolve` or :meth:`reject`.
    """

    def __init__(self) -> None:
        self._pending: dict[str, tuple[asyncio.Future[str], str]] = {}

    async def request_code(self, auth_url: str, state: str) -> str:
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._pending[state] = (future, auth_url)
        _announce(auth_url)
        try:
            return await future
        finally:
            self._pending.pop(state, None)

    def resolve(self, state: str, code: str) -> bool:
        """Hand *code* to the consent waiting on *state*. False if none is waiting."""
        entry = self._pending.get(state)
        if entry is None or entry[0].done():
            return False
        entry[0].set_result(code)
        return True

    def reject(self, state: str, error: str) -> bool:
        """Fail the consent waiting on *state* with the provider's error."""
        entry = self._pending.get(state)
        if entry is None or entry[0].done():
            return False
        entry[0].set_exception(AuthError(f"Consent denied: {error}"))
        return True

    def pending_url(self) -> str | None:
        """Consent URL of the most recent pending consent, if any."""
        for future, url in reversed(self._pending.values()):
            if not future.done():
                return url
        return None

    def cancel_all(self) -> None:
        for future, _ in list(self._pending.values()):
            if not future.done():
                future.cancel()
        self._pending.clear()
