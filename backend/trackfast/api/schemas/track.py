"""Tracking request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class TrackRequest(BaseModel):
    """Inbound tracking submission (already normalized by the Edge Gate)."""

    event: str = Field(..., min_length=1)
    properties: dict[str, Any] = Field(default_factory=dict)
    userId: str | None = None
    timestamp: datetime | None = None


class ProviderSummary(BaseModel):
    attempted: int = Field(..., ge=0)
    successful: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)


class TrackResponse(BaseModel):
    """Successful tracking response."""

    success: bool = True
    event: str
    validated: bool
    providers: ProviderSummary
    timestamp: datetime


class TrackHealthResponse(BaseModel):
    """Provider configuration report (booleans only)."""

    status: str = "ok"
    service: str
    version: str
    providers: dict[str, bool]
    timestamp: datetime
