# Gmail Client: HTTP client for the Gmail API, signed by an AuthorizedClient.
# Created: 2026-10-19

from __future__ import annotations

import base64
import logging
import mimetypes
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any

import httpx

from gmailbridge.config import Settings
from gmailbridge.errors import RemoteError
from gmailbridge.integrations.flow import AuthorizedClient

logger = logging.getLogger(__name__)

# Most recent messages returned by GET /listEmail.
RECENT_MESSAGES_LIMIT = 5


def build_message(
    to: str,
    sender: str | None,
    subject: str,
    body: str,
    attachment: Path | None = None,
) -> dict[str, str]:
    """Build a Gmail API message dict (``{"raw": ...}``).

    Plain text when there is no attachment, multipart/mixed otherwise.
    """
    if attachment is not None:
        message: MIMEText | MIMEMultipart = MIMEMultipart()
        message.attach(MIMEText(body, "plain", "utf-8"))

        content_type, _ = mimetypes.guess_type(attachment.name)
        if content_type is None:
            content_type = "application/octet-stream"
        main_type, sub_type = content_type.split("/", 1)

        part = MIMEBase(main_type, sub_type)
        part.set_payload(attachment.read_bytes())
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", "attachment", filename=attachment.name)
        message.attach(part)
    else:
        message = MIMEText(body, "plain", "utf-8")

    message["to"] = to
    if sender:
        message["from"] = sender
    message["subject"] = subject

    return {"raw": base64.urlsafe_b64encode(message.as_bytes()).decode()}


class GmailClient:
    """One instance per authorized request; each method is one Gmail API call."""

    def __init__(
        self,
        client: AuthorizedClient,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = client
        self._base = settings.gmail_base_url.rstrip("/")
        self._timeout = settings.http_timeout
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.request(
                    method, f"{self._base}{path}", headers=self._client.headers, **kwargs
                )
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Gmail API %s %s failed with %d", method, path, status)
            raise RemoteError(f"Gmail API rejected {method} {path} ({status})", status) from e
        except httpx.RequestError as e:
            raise RemoteError(f"Gmail API unreachable: {e}") from e
        except ValueError as e:
            raise RemoteError(f"Gmail API returned invalid JSON for {path}") from e

    async def list_labels(self) -> dict[str, str]:
        """List label names, keyed by their position in the API response."""
        data = await self._request("GET", "/labels")
        return {str(i): lb["name"] for i, lb in enumerate(data.get("labels", []))}

    async def get_profile(self) -> dict[str, Any]:
        """Profile of the authenticated account (email, totals, history id)."""
        return await self._request("GET", "/profile")

    async def list_messages(self, max_results: int = RECENT_MESSAGES_LIMIT) -> dict[str, Any]:
        """Most recent message ids, spam and trash excluded.

        The ``messages`` list is capped at *max_results* even if the API
        returns more.
        """
        data = await self._request(
            "GET",
            "/messages",
            params={"maxResults": max_results, "includeSpamTrash": "false"},
        )
        if "messages" in data:
            data["messages"] = data["messages"][:max_results]
        return data

    async def send_message(
        self,
        to: str,
        sender: str | None,
        subject: str,
        body: str,
        attachment: Path | None = None,
    ) -> dict[str, Any]:
        """Send an email, optionally with one attachment.

        Returns:
            The API response (id, threadId, labelIds).
        """
        message = build_message(to, sender, subject, body, attachment)
        data = await self._request("POST", "/messages/send", json=message)
        logger.info("Message sent: id=%s, threadId=%s", data.get("id"), data.get("threadId"))
        return data
