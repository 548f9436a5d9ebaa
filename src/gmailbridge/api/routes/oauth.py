# OAuth router: browser redirect target for callback-mode consent.
# Created: 2026-10-19

from __future__ import annotations

import html
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from gmailbridge.api.deps import get_flow
from gmailbridge.integrations.consent import CallbackPrompt
from gmailbridge.integrations.flow import AuthorizationFlow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["OAuth"])


def _callback_prompt(flow: AuthorizationFlow) -> CallbackPrompt | None:
    return flow.prompt if isinstance(flow.prompt, CallbackPrompt) else None


@router.get("/oauth/authorize")
async def oauth_authorize(flow: AuthorizationFlow = Depends(get_flow)):
    """Redirect to the consent screen of the consent currently waiting, if any."""
    prompt = _callback_prompt(flow)
    url = prompt.pending_url() if prompt else None
    if url is None:
        raise HTTPException(status_code=404, detail="No authorization is pending")
    return RedirectResponse(url)


@router.get("/oauth/callback", response_class=HTMLResponse)
async def oauth_callback(
    code: str = Query(""),
    state: str = Query(""),
    error: str = Query(""),
    flow: AuthorizationFlow = Depends(get_flow),
):
    """Hand the authorization code back to the waiting consent."""
    prompt = _callback_prompt(flow)
    if prompt is None:
        return HTMLResponse(
            "<h2>Callback consent is not enabled</h2>"
            "<p>Set GMAILBRIDGE_CONSENT_MODE=callback.</p>",
            status_code=400,
        )

    if error:
        prompt.reject(state, error)
        logger.warning("Consent denied by provider: %s", error)
        return HTMLResponse(
            f"<h2>OAuth Error</h2><p>{html.escape(error)}</p><p>You can close this window.</p>",
            status_code=400,
        )

    if not code:
        return HTMLResponse("<h2>Missing authorization code</h2>", status_code=400)

    if not prompt.resolve(state, code):
        return HTMLResponse(
            "<h2>OAuth flow expired or not found.</h2>", status_code=400
        )

    return HTMLResponse(
        "<h2>Authorization Successful</h2><p>You can close this window.</p>"
    )
