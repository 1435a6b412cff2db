"""API schema package."""

from trackfast.api.schemas.track import (
    ProviderSummary,
    TrackHealthResponse,
    TrackRequest,
    TrackResponse,
)

__all__ = ["ProviderSummary", "TrackHealthResponse", "TrackRequest", "TrackResponse"]
