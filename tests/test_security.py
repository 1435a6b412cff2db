from datetime import datetime, timezone

import pytest
from jose import jwt

from trackfast.core.errors import TrustMarkerError
from trackfast.core.security import (
    MARKER_ISSUER,
    create_trust_marker,
    properties_digest,
    verify_trust_marker,
)

PROPS = {"email": "a@b.com", "plan": "free"}


def test_marker_round_trip():
    validated_at = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    token = create_trust_marker("user_signed_up", PROPS, validated_at=validated_at)
    marker = verify_trust_marker(token, "user_signed_up", dict(reversed(PROPS.items())))
    assert marker.validated is True
    assert marker.event == "user_signed_up"
    assert marker.validated_at == validated_at.isoformat()


def test_digest_ignores_key_order():
    assert properties_digest({"a": 1, "b": 2}) == properties_digest({"b": 2, "a": 1})
    assert properties_digest({"a": 1}) != properties_digest({"a": 2})


@pytest.mark.parametrize("token", [None, ""])
def test_missing_marker_is_rejected(token):
    with pytest.raises(TrustMarkerError):
        verify_trust_marker(token, "user_signed_up", PROPS)


def test_marker_for_another_event_is_rejected():
    token = create_trust_marker("pageview", PROPS)
    with pytest.raises(TrustMarkerError) as excinfo:
        verify_trust_marker(token, "user_signed_up", PROPS)
    assert excinfo.value.details["marker_event"] == "pageview"


def test_tampered_properties_are_rejected():
    token = create_trust_marker("user_signed_up", PROPS)
    with pytest.raises(TrustMarkerError):
        verify_trust_marker(token, "user_signed_up", {**PROPS, "plan": "growth"})


def test_forged_signature_is_rejected():
    forged = jwt.encode(
        {"iss": MARKER_ISSUER, "evt": "user_signed_up", "val": True,
         "pdg": properties_digest(PROPS), "vat": "2026-01-01T00:00:00+00:00"},
        "not-the-server-secret",
        algorithm="HS256",
    )
    with pytest.raises(TrustMarkerError):
        verify_trust_marker(forged, "user_signed_up", PROPS)


def test_expired_marker_is_rejected():
    token = create_trust_marker("user_signed_up", PROPS, ttl_sec=-1)
    with pytest.raises(TrustMarkerError):
        verify_trust_marker(token, "user_signed_up", PROPS)


def test_garbage_marker_is_rejected():
    with pytest.raises(TrustMarkerError):
        verify_trust_marker("not.a.jwt", "user_signed_up", PROPS)
