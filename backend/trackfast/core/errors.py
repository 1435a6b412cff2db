"""
Domain-specific exception hierarchy for event validation and dispatch.

All exceptions inherit from TrackfastError so callers can catch broadly
or narrowly as needed.  Each exception carries its ErrorKind plus a
structured ``details`` dict (property name, expected kind, allowed
values, ...) that the Edge Gate copies verbatim into client responses.

Recovery boundaries:
    - ValidationFailure subclasses  → Validator turns them into a failed
      ValidationResult, Edge Gate into a 400 response.
    - ProviderError subclasses      → Dispatcher turns them into a failed
      ProviderOutcome.
    - Everything else               → logged in full, generic 500.
"""

from __future__ import annotations

from typing import Any

from trackfast.core.constants import ErrorKind


class TrackfastError(Exception):
    """Base exception for all trackfast errors."""

    kind: ErrorKind = ErrorKind.INTERNAL_FAULT

    def __init__(
        self,
        message: str,
        *,
        event: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.event = event
        self.details = details or {}
        super().__init__(message)


# ═══════════════════════════════════════════════════════════
#  Schema / configuration
# ═══════════════════════════════════════════════════════════

class SchemaNotLoaded(TrackfastError):
    """The schema registry was queried before it finished loading."""

    kind = ErrorKind.SCHEMA_NOT_LOADED


class SchemaDefinitionError(TrackfastError):
    """The declarative schema source is malformed."""

    kind = ErrorKind.SCHEMA_DEFINITION


class GuardNotImplemented(TrackfastError):
    """A schema references a guard with no registered predicate."""

    kind = ErrorKind.GUARD_NOT_IMPLEMENTED

    def __init__(self, message: str, *, guard_names: list[str], **kwargs) -> None:
        self.guard_names = guard_names
        super().__init__(message, **kwargs)


# ═══════════════════════════════════════════════════════════
#  Validation (client-recoverable)
# ═══════════════════════════════════════════════════════════

class ValidationFailure(TrackfastError):
    """An event submission did not satisfy its schema."""


class ParseFailed(ValidationFailure):
    """The inbound payload is not well-formed."""

    kind = ErrorKind.PARSE_FAILED


class UnknownEvent(ValidationFailure):
    """The event name is not declared in the schema registry."""

    kind = ErrorKind.UNKNOWN_EVENT

    def __init__(self, message: str, *, known_events: list[str], **kwargs) -> None:
        self.known_events = known_events
        super().__init__(message, **kwargs)
        self.details.setdefault("known_events", list(known_events))


class PropertyFailure(ValidationFailure):
    """A violation tied to a single declared property."""

    def __init__(self, message: str, *, property_name: str, **kwargs) -> None:
        self.property_name = property_name
        super().__init__(message, **kwargs)
        self.details.setdefault("property", property_name)


class TypeMismatch(PropertyFailure):
    kind = ErrorKind.TYPE_MISMATCH


class EnumViolation(PropertyFailure):
    kind = ErrorKind.ENUM_VIOLATION


class MissingRequired(PropertyFailure):
    kind = ErrorKind.MISSING_REQUIRED


class GuardViolation(ValidationFailure):
    """A guard predicate returned False for the normalized properties."""

    kind = ErrorKind.GUARD_VIOLATION

    def __init__(self, message: str, *, guard_name: str, **kwargs) -> None:
        self.guard_name = guard_name
        super().__init__(message, **kwargs)
        self.details.setdefault("guard", guard_name)


# ═══════════════════════════════════════════════════════════
#  Provider delivery (recovered inside the Dispatcher)
# ═══════════════════════════════════════════════════════════

class ProviderError(TrackfastError):
    """Delivery to an analytics provider failed."""

    def __init__(
        self,
        message: str,
        *,
        provider_id: str,
        status_code: int | None = None,
        **kwargs,
    ) -> None:
        self.provider_id = provider_id
        self.status_code = status_code
        super().__init__(message, **kwargs)


class ProviderTransportError(ProviderError):
    kind = ErrorKind.PROVIDER_TRANSPORT_ERROR


class ProviderTimeout(ProviderError):
    kind = ErrorKind.PROVIDER_TIMEOUT


# ═══════════════════════════════════════════════════════════
#  Gate / internal
# ═══════════════════════════════════════════════════════════

class TrustMarkerError(TrackfastError):
    """A trust marker is missing, forged, expired, or does not match."""

    kind = ErrorKind.TRUST_MARKER


class InternalFault(TrackfastError):
    """Anything unexpected inside the gate; never shown in detail to callers."""

    kind = ErrorKind.INTERNAL_FAULT
