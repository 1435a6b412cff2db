"""Shared constants and enums used across the application."""

from enum import StrEnum


class PropertyKind(StrEnum):
    """Value kinds a declared event property may take."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"


class ValidationOutcome(StrEnum):
    """Result of validating one event submission."""

    PASS = "pass"
    FAIL = "fail"


class ErrorKind(StrEnum):
    """Machine-readable error taxonomy surfaced to callers and logs."""

    PARSE_FAILED = "ParseFailed"
    UNKNOWN_EVENT = "UnknownEvent"
    TYPE_MISMATCH = "TypeMismatch"
    ENUM_VIOLATION = "EnumViolation"
    MISSING_REQUIRED = "MissingRequired"
    GUARD_VIOLATION = "GuardViolation"
    GUARD_NOT_IMPLEMENTED = "GuardNotImplemented"
    PROVIDER_TRANSPORT_ERROR = "ProviderTransportError"
    PROVIDER_TIMEOUT = "ProviderTimeout"
    INTERNAL_FAULT = "InternalFault"
    SCHEMA_NOT_LOADED = "SchemaNotLoaded"
    SCHEMA_DEFINITION = "SchemaDefinitionError"
    TRUST_MARKER = "TrustMarkerError"


class GateState(StrEnum):
    """States an inbound request moves through inside the Edge Gate."""

    RECEIVED = "RECEIVED"
    PARSING_PAYLOAD = "PARSING_PAYLOAD"
    PARSE_FAILED = "PARSE_FAILED"
    VALIDATING = "VALIDATING"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATED = "VALIDATED"
    FORWARDED = "FORWARDED"
    INTERNAL_FAULT = "INTERNAL_FAULT"


class DoctorStatus(StrEnum):
    """Status of a single doctor check."""

    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


# Header carrying the signed trust marker from the gate to the track route.
TRUST_MARKER_HEADER = "x-trackfast-marker"

# Paths the Edge Gate intercepts (POST only).
GATED_PATHS = frozenset({"/api/track"})
