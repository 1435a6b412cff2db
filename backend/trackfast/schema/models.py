"""
Event schema data model.

Built once from the declarative schema source and read-only afterwards.
``from_dict`` constructors translate the generator's raw mapping into
these types and enforce the invariants the validator relies on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from trackfast.core.constants import PropertyKind
from trackfast.core.errors import SchemaDefinitionError


def kind_of(value: Any) -> str:
    """Name the JSON kind of a runtime value (used in TypeMismatch messages)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def matches_kind(kind: PropertyKind, value: Any) -> bool:
    """Single dispatch-on-kind type check."""
    if kind is PropertyKind.STRING or kind is PropertyKind.ENUM:
        return isinstance(value, str)
    if kind is PropertyKind.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is PropertyKind.BOOLEAN:
        return isinstance(value, bool)
    return False


@dataclass(frozen=True)
class PropertyConstraint:
    """Constraint on one declared property."""

    kind: PropertyKind
    required: bool = False
    default: Any = None
    has_default: bool = False
    enum_values: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, event: str, name: str, raw: Mapping[str, Any]) -> "PropertyConstraint":
        try:
            kind = PropertyKind(raw.get("type", raw.get("kind")))
        except ValueError:
            raise SchemaDefinitionError(
                f"Property '{name}' of event '{event}' has unsupported kind {raw.get('type')!r}",
                event=event,
            ) from None

        enum_values = tuple(raw.get("enum") or raw.get("enum_values") or ())
        if kind is PropertyKind.ENUM and not enum_values:
            raise SchemaDefinitionError(
                f"Enum property '{name}' of event '{event}' declares no values",
                event=event,
            )
        if kind is not PropertyKind.ENUM and enum_values:
            raise SchemaDefinitionError(
                f"Property '{name}' of event '{event}' declares enum values but is {kind}",
                event=event,
            )
        if not all(isinstance(v, str) for v in enum_values):
            raise SchemaDefinitionError(
                f"Enum values of '{name}' in event '{event}' must be strings",
                event=event,
            )

        has_default = "default" in raw
        default = raw.get("default")
        if has_default:
            if not matches_kind(kind, default):
                raise SchemaDefinitionError(
                    f"Default for '{name}' in event '{event}' is {kind_of(default)}, expected {kind}",
                    event=event,
                )
            if kind is PropertyKind.ENUM and default not in enum_values:
                raise SchemaDefinitionError(
                    f"Default for '{name}' in event '{event}' is not one of {list(enum_values)}",
                    event=event,
                )

        return cls(
            kind=kind,
            required=bool(raw.get("required", False)),
            default=default,
            has_default=has_default,
            enum_values=enum_values,
        )


@dataclass(frozen=True)
class GuardSpec:
    """Declarative description of a guard; the predicate is resolved by name."""

    name: str
    message: str
    property: str | None = None
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_dict(cls, event: str, raw: Mapping[str, Any]) -> "GuardSpec":
        name = raw.get("name")
        if not name or not isinstance(name, str):
            raise SchemaDefinitionError(f"Guard in event '{event}' has no name", event=event)
        return cls(
            name=name,
            message=raw.get("message") or f"Guard '{name}' failed",
            property=raw.get("property"),
            params=MappingProxyType(dict(raw.get("params") or {})),
        )


@dataclass(frozen=True)
class EventSchema:
    """Declared shape of one named event."""

    name: str
    description: str = ""
    properties: Mapping[str, PropertyConstraint] = field(
        default_factory=lambda: MappingProxyType({})
    )
    guards: tuple[GuardSpec, ...] = ()

    @classmethod
    def from_dict(cls, name: str, raw: Mapping[str, Any]) -> "EventSchema":
        raw_props = raw.get("properties") or {}
        if not isinstance(raw_props, Mapping):
            raise SchemaDefinitionError(f"Properties of event '{name}' must be a mapping", event=name)

        # dict preserves declaration order; validation walks it in that order
        properties = {
            prop_name: PropertyConstraint.from_dict(name, prop_name, prop_raw)
            for prop_name, prop_raw in raw_props.items()
        }
        guards = tuple(GuardSpec.from_dict(name, g) for g in raw.get("guards") or ())

        for guard in guards:
            if guard.property is not None and guard.property not in properties:
                raise SchemaDefinitionError(
                    f"Guard '{guard.name}' in event '{name}' targets undeclared property '{guard.property}'",
                    event=name,
                )

        return cls(
            name=name,
            description=raw.get("description", ""),
            properties=MappingProxyType(properties),
            guards=guards,
        )
