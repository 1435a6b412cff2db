import asyncio
from typing import Any, Callable, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

from trackfast.dispatch.dispatcher import Dispatcher
from trackfast.dispatch.models import TrackingEvent
from trackfast.dispatch.providers import ProviderConfig, ProviderRequest
from trackfast.schema.catalog import EVENT_SCHEMAS
from trackfast.schema.registry import SchemaRegistry
from trackfast.validation.validator import Validator

# tests/conftest.py

SIGNUP_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "user_signed_up": {
        "description": "A new user created an account",
        "properties": {
            "email": {"type": "string", "required": True},
            "plan": {"type": "enum", "required": True, "enum": ["free", "starter", "growth"]},
            "source": {"type": "string", "required": False},
        },
    },
    "pageview": {
        "properties": {
            "path": {"type": "string", "required": True},
            "referrer": {"type": "string"},
        },
    },
}


class StubProvider(ProviderConfig):
    """Minimal provider posting to a fixed URL; lets tests drive MockTransport by host."""

    def __init__(self, provider_id: str, url: str, enabled: bool = True) -> None:
        self.provider_id = provider_id
        self.url = url
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def build_request(self, event: TrackingEvent) -> ProviderRequest:
        return ProviderRequest(
            method="POST",
            url=self.url,
            json={"event": event.event_name, "properties": event.properties},
        )


@pytest.fixture
def signup_registry() -> SchemaRegistry:
    return SchemaRegistry.from_mapping(SIGNUP_SCHEMAS)


@pytest.fixture
def catalog_registry() -> SchemaRegistry:
    return SchemaRegistry.from_mapping(EVENT_SCHEMAS)


@pytest.fixture
def validator(catalog_registry) -> Validator:
    return Validator(catalog_registry)


@pytest.fixture
def run() -> Callable:
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run


@pytest.fixture
def sent_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def mock_client(sent_requests) -> Callable[..., httpx.AsyncClient]:
    """
    Build an AsyncClient whose responses are chosen per host.

    Usage: client = mock_client({"ok.test": 200, "down.test": 503})
    A value may also be an exception instance (raised) or a callable
    ``(request) -> httpx.Response`` (sync or async).
    """

    def _make(routes: Dict[str, Any]) -> httpx.AsyncClient:
        async def handler(request: httpx.Request) -> httpx.Response:
            sent_requests.append(request)
            action = routes.get(request.url.host, 200)
            if isinstance(action, Exception):
                raise action
            if callable(action):
                result = action(request)
                if asyncio.iscoroutine(result):
                    result = await result
                return result
            return httpx.Response(action, json={"status": action})

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def client() -> TestClient:
    """TestClient with lifespan run (registry loaded, gate installed)."""
    import trackfast.main as main_mod

    with TestClient(main_mod.app) as c:
        yield c


@pytest.fixture
def use_dispatch(client, mock_client):
    """Swap the app's providers/dispatcher for mocked ones."""

    def _use(providers: List[ProviderConfig], routes: Dict[str, Any], timeout: float = 1.0) -> None:
        client.app.state.providers = providers
        client.app.state.dispatcher = Dispatcher(client=mock_client(routes), timeout=timeout)

    return _use
