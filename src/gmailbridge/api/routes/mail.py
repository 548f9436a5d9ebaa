# Mail router: labels, profile, recent messages and send.
# Created: 2026-10-19

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from gmailbridge.api.deps import get_app_settings, get_flow
from gmailbridge.api.schemas import MessageResponse
from gmailbridge.config import Settings
from gmailbridge.errors import ConfigError, GmailBridgeError
from gmailbridge.integrations.flow import AuthorizationFlow, AuthorizedClient
from gmailbridge.integrations.gmail import GmailClient
from gmailbridge.uploads import save_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Mail"])

# Response texts kept byte-for-byte for existing clients (including the typo).
SEND_OK = "Email sent successsfully"
SEND_FAILED = "Error while sending email"


@router.get("/getLabels")
async def get_labels(
    flow: AuthorizationFlow = Depends(get_flow),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, str]:
    """Label names of the account, keyed by index."""
    labels = await flow.run(lambda client: GmailClient(client, settings).list_labels())
    logger.debug("Listed %d labels", len(labels))
    return labels


@router.get("/getProfileInfo")
async def get_profile_info(
    flow: AuthorizationFlow = Depends(get_flow),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Profile of the authenticated account."""
    return await flow.run(lambda client: GmailClient(client, settings).get_profile())


@router.get("/listEmail")
async def list_email(
    flow: AuthorizationFlow = Depends(get_flow),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Ids of the five most recent messages."""
    return await flow.run(lambda client: GmailClient(client, settings).list_messages())


@router.post(
    "/sendEmail",
    response_model=MessageResponse,
    responses={503: {"model": MessageResponse}},
)
async def send_email(
    file: UploadFile | None = File(None),
    to: str | None = Form(None),
    subject: str | None = Form(None),
    body: str | None = Form(None),
    flow: AuthorizationFlow = Depends(get_flow),
    settings: Settings = Depends(get_app_settings),
):
    """Send an email, attaching the uploaded file when one is given."""
    try:
        attachment: Path | None = None
        if file is not None and file.filename:
            attachment = await save_upload(file, settings.upload_dir)

        recipient = to or settings.default_to
        if not recipient:
            raise ConfigError("No recipient: send a 'to' field or set GMAILBRIDGE_DEFAULT_TO")

        async def action(client: AuthorizedClient) -> dict[str, Any]:
            return await GmailClient(client, settings).send_message(
                to=recipient,
                sender=settings.default_from,
                subject=subject or settings.default_subject,
                body=body or settings.default_body,
                attachment=attachment,
            )

        await flow.run(action)
    except (GmailBridgeError, OSError) as e:
        logger.error("%s: %s", SEND_FAILED, e)
        return JSONResponse(status_code=503, content={"message": SEND_FAILED})

    return MessageResponse(message=SEND_OK)
