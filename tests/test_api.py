import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from trackfast.api.v1 import track
from trackfast.core.constants import TRUST_MARKER_HEADER
from trackfast.dispatch.dispatcher import Dispatcher
from trackfast.dispatch.providers import GA4Provider, PostHogProvider
from trackfast.gate.edge_gate import EdgeGate
from trackfast.schema.registry import SchemaRegistry
from trackfast.validation.validator import Validator

from conftest import StubProvider

SIGNUP = {"event": "user_signed_up", "properties": {"email": "a@b.com", "plan": "starter"}}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_provider_health_reports_booleans_only(client, use_dispatch):
    use_dispatch([PostHogProvider(api_key="phc_secret"), GA4Provider("", "")], {})
    response = client.get("/api/track")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["providers"] == {"posthog": True, "ga4": False}
    assert "phc_secret" not in response.text


def test_valid_event_is_dispatched(client, use_dispatch, sent_requests):
    use_dispatch(
        [PostHogProvider(api_key="phc", host="https://ph.test"), StubProvider("p2", "https://two.test/")],
        {},
    )
    response = client.post("/api/track", json=SIGNUP)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["event"] == "user_signed_up"
    assert data["validated"] is True
    assert data["providers"] == {"attempted": 2, "successful": 2, "failed": 0}

    posthog = next(r for r in sent_requests if r.url.host == "ph.test")
    props = json.loads(posthog.content)["properties"]
    assert props["$validated"] is True
    assert props["$lib"] == "trackfast-server"
    assert props["email"] == "a@b.com"


def test_defaults_are_forwarded_to_providers(client, use_dispatch, sent_requests):
    use_dispatch([StubProvider("p1", "https://one.test/")], {})
    response = client.post(
        "/api/track", json={"event": "payment_completed", "properties": {"amount": 12.5}}
    )
    assert response.status_code == 200
    body = json.loads(sent_requests[0].content)
    assert body["properties"] == {"amount": 12.5, "currency": "USD"}


def test_partial_provider_failure_is_still_success(client, use_dispatch):
    use_dispatch(
        [StubProvider("p1", "https://one.test/"), StubProvider("p2", "https://two.test/")],
        {"two.test": 500},
    )
    response = client.post("/api/track", json=SIGNUP)
    assert response.status_code == 200
    assert response.json()["providers"] == {"attempted": 2, "successful": 1, "failed": 1}


def test_invalid_json_is_rejected(client, use_dispatch, sent_requests):
    use_dispatch([StubProvider("p1", "https://one.test/")], {})
    response = client.post(
        "/api/track", content=b"{bad", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON payload"
    assert sent_requests == []


def test_text_plain_body_is_accepted(client, use_dispatch, sent_requests):
    # navigator.sendBeacon posts JSON strings as text/plain
    use_dispatch([StubProvider("p1", "https://one.test/")], {})
    response = client.post(
        "/api/track", content=json.dumps(SIGNUP), headers={"content-type": "text/plain"}
    )
    assert response.status_code == 200
    assert response.json()["validated"] is True
    assert len(sent_requests) == 1


@pytest.mark.parametrize(
    "extra, error",
    [
        ({"userId": 123}, "Invalid userId"),
        ({"timestamp": "yesterday"}, "Invalid timestamp"),
    ],
)
def test_malformed_envelope_fields_are_rejected(client, use_dispatch, sent_requests, extra, error):
    use_dispatch([StubProvider("p1", "https://one.test/")], {})
    response = client.post("/api/track", json={**SIGNUP, **extra})
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == error
    assert data["kind"] == "ParseFailed"
    assert sent_requests == []


def test_user_id_and_timestamp_are_accepted(client, use_dispatch, sent_requests):
    use_dispatch([StubProvider("p1", "https://one.test/")], {})
    response = client.post(
        "/api/track", json={**SIGNUP, "userId": "u-7", "timestamp": "2026-05-04T10:30:00Z"}
    )
    assert response.status_code == 200


def test_unknown_event_is_rejected(client):
    response = client.post("/api/track", json={"event": "foo", "properties": {}})
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Unknown event: foo"
    assert "user_signed_up" in data["availableEvents"]


@pytest.mark.parametrize(
    "properties, kind",
    [
        ({"plan": "starter"}, "MissingRequired"),
        ({"email": "a@b.com", "plan": "enterprise"}, "EnumViolation"),
        ({"email": 5, "plan": "free"}, "TypeMismatch"),
        ({"email": "nope", "plan": "free"}, "GuardViolation"),
    ],
)
def test_invalid_properties_are_rejected(client, use_dispatch, sent_requests, properties, kind):
    use_dispatch([StubProvider("p1", "https://one.test/")], {})
    response = client.post("/api/track", json={"event": "user_signed_up", "properties": properties})
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Event validation failed"
    assert data["kind"] == kind
    assert data["properties"] == properties
    assert sent_requests == []


def test_client_supplied_marker_is_replaced(client, use_dispatch, sent_requests):
    use_dispatch([StubProvider("p1", "https://one.test/")], {})
    response = client.post(
        "/api/track",
        json={"event": "user_signed_up", "properties": {"plan": "starter"}},
        headers={TRUST_MARKER_HEADER: "forged.marker.value"},
    )
    # the gate still validates; a forged marker cannot skip it
    assert response.status_code == 400
    assert sent_requests == []


def test_unimplemented_guard_returns_generic_500(client):
    registry = SchemaRegistry.from_mapping(
        {"evt": {"guards": [{"name": "does_not_exist", "message": "nope"}]}}
    )
    client.app.state.gate = EdgeGate(Validator(registry))
    response = client.post("/api/track", json={"event": "evt", "properties": {}})
    assert response.status_code == 500
    assert response.json() == {
        "error": "Internal validation error",
        "details": "Event validation system error",
        "kind": "InternalFault",
    }


def test_get_is_not_gated(client):
    response = client.get("/api/track", headers={TRUST_MARKER_HEADER: "x"})
    assert response.status_code == 200


# ─── Route without the gate in front ─────────────────────

@pytest.fixture
def bare_client(catalog_registry, mock_client):
    app = FastAPI()
    app.include_router(track.router, prefix="/api")
    app.state.validator = Validator(catalog_registry)
    app.state.providers = [StubProvider("p1", "https://one.test/")]
    app.state.dispatcher = Dispatcher(client=mock_client({}))
    with TestClient(app) as c:
        yield c


def test_route_revalidates_without_marker(bare_client, sent_requests):
    response = bare_client.post("/api/track", json=SIGNUP)
    assert response.status_code == 200
    assert response.json()["validated"] is False
    assert json.loads(sent_requests[0].content)["properties"] == SIGNUP["properties"]


def test_route_rejects_invalid_event_without_marker(bare_client, sent_requests):
    response = bare_client.post(
        "/api/track",
        json={"event": "user_signed_up", "properties": {"plan": "gold"}},
        headers={TRUST_MARKER_HEADER: "forged.marker.value"},
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "MissingRequired"
    assert sent_requests == []


def test_route_rejects_marker_for_other_payload(bare_client, sent_requests):
    from trackfast.core.security import create_trust_marker

    marker = create_trust_marker("user_signed_up", {"email": "a@b.com", "plan": "starter"})
    response = bare_client.post(
        "/api/track",
        json={"event": "user_signed_up", "properties": {"email": "x@y.com", "plan": "starter"}},
        headers={TRUST_MARKER_HEADER: marker},
    )
    assert response.status_code == 200
    assert response.json()["validated"] is False


def test_route_trusts_matching_marker(bare_client):
    from trackfast.core.security import create_trust_marker

    marker = create_trust_marker("user_signed_up", SIGNUP["properties"])
    response = bare_client.post("/api/track", json=SIGNUP, headers={TRUST_MARKER_HEADER: marker})
    assert response.status_code == 200
    assert response.json()["validated"] is True
