"""
Trust marker signing and verification.

The Edge Gate signs a short-lived JWS for every event it validates.  The
marker binds the event name, the validation timestamp and a digest of
the forwarded properties, so a downstream stage can skip re-validation
only for the exact payload the gate approved.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from jose import JWTError, jwt

from trackfast.core.config import settings
from trackfast.core.errors import TrustMarkerError

MARKER_ISSUER = "trackfast-edge-gate"


@dataclass(frozen=True)
class TrustMarker:
    """Decoded, verified trust marker."""

    event: str
    validated_at: str
    validated: bool


def properties_digest(properties: Mapping[str, Any]) -> str:
    """Stable SHA-256 over the canonical JSON form of a property bag."""
    canonical = json.dumps(properties, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def create_trust_marker(
    event: str,
    properties: Mapping[str, Any],
    validated_at: datetime | None = None,
    ttl_sec: int | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    validated_at = validated_at or now
    ttl = settings.TRUST_MARKER_TTL_SECONDS if ttl_sec is None else ttl_sec
    claims = {
        "iss": MARKER_ISSUER,
        "evt": event,
        "vat": validated_at.isoformat(),
        "val": True,
        "pdg": properties_digest(properties),
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
    }
    return jwt.encode(
        claims,
        settings.TRUST_MARKER_SECRET,
        algorithm=settings.TRUST_MARKER_ALGORITHM,
    )


def verify_trust_marker(
    token: str | None,
    event: str,
    properties: Mapping[str, Any],
) -> TrustMarker:
    """
    Verify a marker against the payload it travels with.

    Raises:
        TrustMarkerError: missing, bad signature, expired, wrong issuer,
            or the event/properties differ from what the gate approved.
    """
    if not token:
        raise TrustMarkerError("Trust marker missing", event=event)

    try:
        claims = jwt.decode(
            token,
            settings.TRUST_MARKER_SECRET,
            algorithms=[settings.TRUST_MARKER_ALGORITHM],
            issuer=MARKER_ISSUER,
        )
    except JWTError as exc:
        raise TrustMarkerError(f"Trust marker rejected: {exc}", event=event) from exc

    if claims.get("evt") != event:
        raise TrustMarkerError(
            "Trust marker was issued for a different event",
            event=event,
            details={"marker_event": claims.get("evt")},
        )
    if claims.get("pdg") != properties_digest(properties):
        raise TrustMarkerError("Trust marker does not match forwarded properties", event=event)
    if claims.get("val") is not True:
        raise TrustMarkerError("Trust marker is not a validation marker", event=event)

    return TrustMarker(event=claims["evt"], validated_at=claims["vat"], validated=True)
