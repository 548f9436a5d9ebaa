# Health router.
# Created: 2026-10-19

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from gmailbridge.api.deps import get_flow
from gmailbridge.api.schemas import HealthResponse
from gmailbridge.errors import PersistenceError
from gmailbridge.integrations.flow import AuthorizationFlow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health(flow: AuthorizationFlow = Depends(get_flow)):
    try:
        authorized = flow.is_authorized()
    except PersistenceError as e:
        logger.warning("Health check could not read token cache: %s", e)
        authorized = False
    return HealthResponse(authorized=authorized)
