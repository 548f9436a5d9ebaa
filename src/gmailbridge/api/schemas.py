# API response schemas.
# Created: 2026-10-19

from __future__ import annotations

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Fixed-text status body used by POST /sendEmail."""

    message: str


class HealthResponse(BaseModel):
    status: str = "ok"
    authorized: bool = False
