"""
Tracking endpoints — the dispatch boundary behind the Edge Gate.

POST /track trusts a verified gate marker and skips re-validation;
without one (gate bypassed, forged or stale marker) it validates the
payload itself before dispatching.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from trackfast.api.deps import get_dispatcher, get_providers, get_validator
from trackfast.api.schemas.track import (
    ProviderSummary,
    TrackHealthResponse,
    TrackRequest,
    TrackResponse,
)
from trackfast.core.config import settings
from trackfast.core.constants import TRUST_MARKER_HEADER
from trackfast.core.errors import TrustMarkerError
from trackfast.core.logging import get_logger
from trackfast.core.security import verify_trust_marker
from trackfast.dispatch.dispatcher import Dispatcher
from trackfast.dispatch.models import TrackingEvent
from trackfast.dispatch.providers import ProviderConfig, provider_health
from trackfast.gate.edge_gate import EdgeGate
from trackfast.validation.validator import Validator

router = APIRouter(tags=["Tracking"])
logger = get_logger(__name__)


# ─── Track ────────────────────────────────────────────────
@router.post("/track", response_model=TrackResponse)
async def track_event(
    payload: TrackRequest,
    marker: str | None = Header(default=None, alias=TRUST_MARKER_HEADER),
    validator: Validator = Depends(get_validator),
    dispatcher: Dispatcher = Depends(get_dispatcher),
    providers: list[ProviderConfig] = Depends(get_providers),
):
    """Fan a validated event out to every configured provider."""
    log = logger.bind(event_name=payload.event)
    try:
        properties = payload.properties
        try:
            trusted = verify_trust_marker(marker, payload.event, properties)
            validated = trusted.validated
        except TrustMarkerError as exc:
            if marker:
                log.warning("Trust marker rejected, re-validating", reason=exc.message)
            validated = False
            result = validator.validate(payload.event, properties)
            if not result.passed:
                return JSONResponse(
                    EdgeGate.failure_body(result, properties),
                    status_code=400,
                )
            properties = result.normalized_properties or {}

        event = TrackingEvent(
            event_name=payload.event,
            properties=properties,
            timestamp=payload.timestamp or datetime.now(timezone.utc),
            user_id=payload.userId,
            validated=validated,
        )
        report = await dispatcher.dispatch(event, providers)

        log.debug("Tracking request handled", validated=validated, report=report.to_dict())
        return TrackResponse(
            event=payload.event,
            validated=validated,
            providers=ProviderSummary(**report.to_summary_dict()),
            timestamp=datetime.now(timezone.utc),
        )

    except Exception as exc:
        log.exception("Tracking API error")
        return JSONResponse(
            {
                "error": "Internal server error",
                "details": str(exc) if settings.is_development else None,
            },
            status_code=500,
        )


# ─── Provider health ──────────────────────────────────────
@router.get("/track", response_model=TrackHealthResponse)
async def track_health(providers: list[ProviderConfig] = Depends(get_providers)):
    """Report which providers are configured, never their credentials."""
    return TrackHealthResponse(
        service=settings.SERVICE_NAME,
        version=settings.LIB_VERSION,
        providers=provider_health(providers),
        timestamp=datetime.now(timezone.utc),
    )
