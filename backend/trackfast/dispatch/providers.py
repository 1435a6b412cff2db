"""
Analytics providers — one outbound request shape per provider.

Each ProviderConfig knows whether its credentials are present
(``enabled``) and how to render a TrackingEvent into an HTTP request.
Credentials come from the config object, never from module globals.

To add a provider:
    1. Subclass ProviderConfig and implement ``enabled`` + ``build_request``
    2. Construct it in build_providers() from settings
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from trackfast.core.config import Settings, settings
from trackfast.dispatch.models import TrackingEvent

_GA4_DISALLOWED = re.compile(r"[^a-zA-Z0-9_]")


@dataclass(frozen=True)
class ProviderRequest:
    """A rendered outbound request."""

    method: str
    url: str
    json: dict[str, Any]
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=lambda: {"Content-Type": "application/json"})


def enrich_properties(
    event: TrackingEvent,
    lib_name: str | None = None,
    lib_version: str | None = None,
) -> dict[str, Any]:
    """Event properties plus the library metadata every provider receives."""
    return {
        **event.properties,
        "$lib": lib_name or settings.LIB_NAME,
        "$lib_version": lib_version or settings.LIB_VERSION,
        "$validated": event.validated,
        "timestamp": event.timestamp.isoformat(),
    }


def sanitize_ga4_event_name(name: str) -> str:
    """GA4 only accepts [a-zA-Z0-9_] in event names."""
    return _GA4_DISALLOWED.sub("_", name)


class ProviderConfig(ABC):
    """Base class for every analytics provider."""

    provider_id: str = "unnamed_provider"

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """True when every credential the provider needs is present."""
        ...

    @abstractmethod
    def build_request(self, event: TrackingEvent) -> ProviderRequest:
        ...


class PostHogProvider(ProviderConfig):
    """PostHog capture API."""

    provider_id = "posthog"

    def __init__(self, api_key: str, host: str = "https://us.i.posthog.com") -> None:
        self.api_key = api_key
        self.host = host.rstrip("/")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def build_request(self, event: TrackingEvent) -> ProviderRequest:
        return ProviderRequest(
            method="POST",
            url=f"{self.host}/capture/",
            json={
                "api_key": self.api_key,
                "event": event.event_name,
                "distinct_id": event.distinct_id,
                "properties": enrich_properties(event),
                "timestamp": event.timestamp.isoformat(),
            },
        )


class GA4Provider(ProviderConfig):
    """Google Analytics 4 Measurement Protocol."""

    provider_id = "ga4"

    def __init__(
        self,
        measurement_id: str,
        api_secret: str,
        collect_url: str = "https://www.google-analytics.com/mp/collect",
    ) -> None:
        self.measurement_id = measurement_id
        self.api_secret = api_secret
        self.collect_url = collect_url

    @property
    def enabled(self) -> bool:
        return bool(self.measurement_id and self.api_secret)

    def build_request(self, event: TrackingEvent) -> ProviderRequest:
        return ProviderRequest(
            method="POST",
            url=self.collect_url,
            params={
                "measurement_id": self.measurement_id,
                "api_secret": self.api_secret,
            },
            json={
                "client_id": event.distinct_id,
                "events": [
                    {
                        "name": sanitize_ga4_event_name(event.event_name),
                        "params": enrich_properties(event),
                    },
                ],
            },
        )


def build_providers(config: Settings | None = None) -> list[ProviderConfig]:
    """Configured providers in dispatch order (enabled or not)."""
    config = config or settings
    return [
        PostHogProvider(api_key=config.POSTHOG_KEY, host=config.POSTHOG_HOST),
        GA4Provider(
            measurement_id=config.GA4_MEASUREMENT_ID,
            api_secret=config.GA4_API_SECRET,
            collect_url=config.GA4_COLLECT_URL,
        ),
    ]


def provider_health(providers: list[ProviderConfig]) -> dict[str, bool]:
    """Which providers are configured. Booleans only, never credentials."""
    return {p.provider_id: p.enabled for p in providers}
