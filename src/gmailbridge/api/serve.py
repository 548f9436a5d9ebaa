"""FastAPI application for ``gmailbridge serve``.

Builds the app around an explicit :class:`~gmailbridge.config.Settings` and
:class:`~gmailbridge.integrations.flow.AuthorizationFlow`; both default to the
process singletons.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gmailbridge import __version__
from gmailbridge.api import mount_routers
from gmailbridge.config import Settings, get_settings
from gmailbridge.errors import GmailBridgeError
from gmailbridge.integrations.flow import AuthorizationFlow

logger = logging.getLogger(__name__)


async def _bridge_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status = getattr(exc, "status_code", 500)
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


def create_app(
    settings: Settings | None = None,
    flow: AuthorizationFlow | None = None,
) -> FastAPI:
    """Build the FastAPI application."""
    settings = settings or get_settings()
    flow = flow or AuthorizationFlow(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("gmailbridge ready (consent mode: %s)", settings.consent_mode)
        yield
        await flow.shutdown()

    app = FastAPI(
        title="gmailbridge",
        description="HTTP bridge for a handful of Gmail operations.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.flow = flow

    app.add_exception_handler(GmailBridgeError, _bridge_error_handler)
    mount_routers(app)

    return app


def run_server(settings: Settings | None = None) -> None:
    """Start uvicorn on the configured host and port."""
    import uvicorn

    settings = settings or get_settings()
    app = create_app(settings)
    logger.info("Server listening on http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
