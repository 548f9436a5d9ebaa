# Shared FastAPI dependencies for the API layer.
# Created: 2026-10-19

from __future__ import annotations

from fastapi import Request

from gmailbridge.config import Settings
from gmailbridge.integrations.flow import AuthorizationFlow


def get_app_settings(request: Request) -> Settings:
    """Settings the app was built with (``app.state.settings``)."""
    return request.app.state.settings


def get_flow(request: Request) -> AuthorizationFlow:
    """Authorization flow shared by every request of the app."""
    return request.app.state.flow
