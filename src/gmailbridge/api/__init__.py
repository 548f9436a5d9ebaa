# API router aggregation.
# Created: 2026-10-19
#
# mount_routers(app) registers every route module at the root path; the Gmail
# routes keep the legacy camelCase paths (/getLabels, /sendEmail, ...).

from __future__ import annotations

from fastapi import FastAPI

from gmailbridge.api.routes import health, mail, oauth


def mount_routers(app: FastAPI) -> None:
    """Include the mail, OAuth and health routers on *app*."""
    for module in (mail, oauth, health):
        app.include_router(module.router)
