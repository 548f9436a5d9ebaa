# Tests for integrations/consent.py
# Created: 2026-10-19

import asyncio
import queue

import pytest

from gmailbridge.errors import AuthError
from gmailbridge.integrations.consent import CallbackPrompt, ConsolePrompt


class Keyboard:
    """Stands in for stdin: each read blocks until a line is typed."""

    def __init__(self):
        self._lines = queue.Queue()
        self.reads = 0

    def __call__(self, prompt):
        self.reads += 1
        return self._lines.get(timeout=5)

    def type(self, line):
        self._lines.put(line)

    def pending(self):
        return self._lines.qsize()


class TestConsolePrompt:
    async def test_reads_and_strips_code(self):
        prompts = []

        def reader(prompt):
            prompts.append(prompt)
            return "  4/abc  \n"

        code = await ConsolePrompt(reader).request_code("https://consent", "s")
        assert code == "4/abc"
        assert "code" in prompts[0].lower()

    async def test_empty_code(self):
        with pytest.raises(AuthError, match="No authorization code"):
            await ConsolePrompt(lambda _p: "   ").request_code("https://consent", "s")

    async def test_stdin_closed(self):
        def reader(prompt):
            raise EOFError

        with pytest.raises(AuthError, match="stdin closed"):
            await ConsolePrompt(reader).request_code("https://consent", "s")

    async def test_logs_consent_url(self, caplog):
        await ConsolePrompt(lambda _p: "c").request_code("https://consent/url", "s")
        assert "https://consent/url" in caplog.text

    async def test_line_typed_after_timeout_reaches_next_consent(self):
        keyboard = Keyboard()
        prompt = ConsolePrompt(keyboard)

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(prompt.request_code("https://consent/1", "s1"), 0.05)

        second = asyncio.create_task(prompt.request_code("https://consent/2", "s2"))
        await asyncio.sleep(0.05)
        keyboard.type("code-typed-by-operator")

        assert await asyncio.wait_for(second, 2) == "code-typed-by-operator"
        assert keyboard.reads == 1

    async def test_line_typed_with_no_consent_waiting_is_discarded(self, caplog):
        keyboard = Keyboard()
        prompt = ConsolePrompt(keyboard)

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(prompt.request_code("https://consent/1", "s1"), 0.05)
        keyboard.type("stale-code")
        while keyboard.pending():
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.05)

        second = asyncio.create_task(prompt.request_code("https://consent/2", "s2"))
        await asyncio.sleep(0.05)
        keyboard.type("fresh-code")

        assert await asyncio.wait_for(second, 2) == "fresh-code"
        assert keyboard.reads == 2
        assert "no authorization was pending" in caplog.text


class TestCallbackPrompt:
    async def test_resolve(self):
        prompt = CallbackPrompt()
        task = asyncio.create_task(prompt.request_code("https://consent", "state-1"))
        while prompt.pending_url() is None:
            await asyncio.sleep(0)

        assert prompt.pending_url() == "https://consent"
        assert prompt.resolve("state-1", "the-code") is True
        assert await task == "the-code"
        assert prompt.pending_url() is None

    async def test_resolve_unknown_state(self):
        prompt = CallbackPrompt()
        assert prompt.resolve("nope", "code") is False

    async def test_reject(self):
        prompt = CallbackPrompt()
        task = asyncio.create_task(prompt.request_code("https://consent", "state-1"))
        while prompt.pending_url() is None:
            await asyncio.sleep(0)

        assert prompt.reject("state-1", "access_denied") is True
        with pytest.raises(AuthError, match="access_denied"):
            await task

    async def test_cancel_all(self):
        prompt = CallbackPrompt()
        task = asyncio.create_task(prompt.request_code("https://consent", "state-1"))
        while prompt.pending_url() is None:
            await asyncio.sleep(0)

        prompt.cancel_all()
        with pytest.raises(asyncio.CancelledError):
            await task
