"""
Validator — checks an event submission against its declared schema.

Order of checks (fail-fast, first violation wins):
    1. Event name resolves in the SchemaRegistry      → UnknownEvent
    2. Each declared property, in declaration order:
         present  → kind check                        → TypeMismatch
                    enum membership (case-sensitive)  → EnumViolation
         absent   → required without default          → MissingRequired
                    default declared                  → default injected
    3. Guards, in declaration order, on the normalized set → GuardViolation

Undeclared input properties pass through unchanged.  A JSON ``null`` on
a declared property counts as absent.

GuardNotImplemented is never converted into a failed result: it is a
schema/implementation drift and propagates to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from trackfast.core.constants import ErrorKind, PropertyKind, ValidationOutcome
from trackfast.core.errors import (
    EnumViolation,
    GuardNotImplemented,
    GuardViolation,
    MissingRequired,
    TypeMismatch,
    ValidationFailure,
)
from trackfast.core.logging import get_logger
from trackfast.schema.models import EventSchema, PropertyConstraint, kind_of, matches_kind
from trackfast.schema.registry import SchemaRegistry
from trackfast.validation.guards import GuardRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one ``Validator.validate`` call."""

    outcome: ValidationOutcome
    event: str
    failure_kind: ErrorKind | None = None
    failure_reason: str | None = None
    normalized_properties: dict[str, Any] | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.outcome is ValidationOutcome.PASS

    @classmethod
    def success(cls, event: str, normalized: dict[str, Any]) -> "ValidationResult":
        return cls(outcome=ValidationOutcome.PASS, event=event, normalized_properties=normalized)

    @classmethod
    def failure(cls, event: str, exc: ValidationFailure) -> "ValidationResult":
        return cls(
            outcome=ValidationOutcome.FAIL,
            event=event,
            failure_kind=exc.kind,
            failure_reason=exc.message,
            details=dict(exc.details),
        )


class Validator:
    """Stateless validator bound to a loaded registry and guard set."""

    def __init__(self, registry: SchemaRegistry, guards: GuardRegistry | None = None) -> None:
        self.registry = registry
        self.guards = guards or GuardRegistry()

    def validate(self, event_name: str, properties: Mapping[str, Any] | None) -> ValidationResult:
        """
        Validate one submission.

        Returns:
            ValidationResult: pass with a normalized copy of the
            properties, or fail with the first violation.

        Raises:
            GuardNotImplemented: a schema guard has no predicate.
            SchemaNotLoaded: the registry is not initialised yet.
        """
        try:
            schema = self.registry.lookup(event_name)
            normalized = self._check_properties(schema, properties or {})
            self._check_guards(schema, normalized)
        except ValidationFailure as exc:
            logger.info(
                "Event validation failed",
                event_name=event_name,
                kind=str(exc.kind),
                reason=exc.message,
            )
            return ValidationResult.failure(event_name, exc)

        return ValidationResult.success(event_name, normalized)

    def ensure_guards_resolvable(self) -> None:
        """
        Fail loudly at startup if any schema references an unknown guard.

        Raises:
            GuardNotImplemented: lists every unresolved guard name.
        """
        missing = self.guards.missing(self.registry.guard_names())
        if missing:
            raise GuardNotImplemented(
                f"Schema references unimplemented guards: {', '.join(missing)}",
                guard_names=missing,
            )

    # ─── Property checks ──────────────────────────────

    def _check_properties(
        self,
        schema: EventSchema,
        properties: Mapping[str, Any],
    ) -> dict[str, Any]:
        # Copy keeps input order; undeclared properties pass through untouched
        normalized = dict(properties)

        for name, constraint in schema.properties.items():
            value = properties.get(name)
            if value is None:
                normalized.pop(name, None)
                if constraint.has_default:
                    normalized[name] = constraint.default
                elif constraint.required:
                    raise MissingRequired(
                        f"Missing required property '{name}'",
                        event=schema.name,
                        property_name=name,
                    )
                continue

            self._check_value(schema.name, name, constraint, value)

        return normalized

    @staticmethod
    def _check_value(event: str, name: str, constraint: PropertyConstraint, value: Any) -> None:
        if not matches_kind(constraint.kind, value):
            expected = str(constraint.kind)
            actual = kind_of(value)
            raise TypeMismatch(
                f"Property '{name}' expected {expected}, got {actual}",
                event=event,
                property_name=name,
                details={"expected": expected, "actual": actual},
            )

        if constraint.kind is PropertyKind.ENUM and value not in constraint.enum_values:
            allowed = list(constraint.enum_values)
            raise EnumViolation(
                f"Property '{name}' must be one of {', '.join(allowed)}; got '{value}'",
                event=event,
                property_name=name,
                details={"allowed_values": allowed, "actual": value},
            )

    # ─── Guards ───────────────────────────────────────

    def _check_guards(self, schema: EventSchema, normalized: Mapping[str, Any]) -> None:
        for spec in schema.guards:
            predicate = self.guards.resolve(spec.name)
            if not predicate(normalized, spec):
                details: dict[str, Any] = {}
                if spec.property is not None:
                    details["property"] = spec.property
                raise GuardViolation(
                    spec.message,
                    event=schema.name,
                    guard_name=spec.name,
                    details=details,
                )
