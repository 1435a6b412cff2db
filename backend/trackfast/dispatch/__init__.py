"""
Provider dispatch — concurrent fan-out of validated events to analytics
providers with per-provider outcome reporting.
"""

from trackfast.dispatch.dispatcher import Dispatcher
from trackfast.dispatch.models import DispatchReport, ProviderOutcome, TrackingEvent
from trackfast.dispatch.providers import (
    GA4Provider,
    PostHogProvider,
    ProviderConfig,
    build_providers,
    provider_health,
)

__all__ = [
    "Dispatcher",
    "DispatchReport",
    "GA4Provider",
    "PostHogProvider",
    "ProviderConfig",
    "ProviderOutcome",
    "TrackingEvent",
    "build_providers",
    "provider_health",
]
