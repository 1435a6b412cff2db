"""
SchemaRegistry — event name → EventSchema lookup.

Lifecycle is init-once, read-many:

    registry = SchemaRegistry()
    registry.load(EVENT_SCHEMAS)         # exactly once, at startup
    registry.lookup("user_signed_up")

Queries made before ``load`` raise SchemaNotLoaded.  After ``load`` the
registry exposes no mutation, so concurrent requests may read it
without synchronisation.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from trackfast.core.errors import SchemaDefinitionError, SchemaNotLoaded, UnknownEvent
from trackfast.core.logging import get_logger
from trackfast.schema.models import EventSchema

logger = get_logger(__name__)


class SchemaRegistry:
    """Immutable (after load) registry of event schemas."""

    def __init__(self) -> None:
        self._schemas: Mapping[str, EventSchema] | None = None

    @classmethod
    def from_mapping(cls, source: Mapping[str, Mapping[str, Any]]) -> "SchemaRegistry":
        registry = cls()
        registry.load(source)
        return registry

    # ─── Initialisation ───────────────────────────────

    def load(self, source: Mapping[str, Mapping[str, Any]]) -> None:
        """
        Build the registry from the generator's declarative mapping.

        Args:
            source: ``{event_name: {"description", "properties", "guards"}}``.
                Iteration order of ``source`` becomes registration order.

        Raises:
            SchemaDefinitionError: source is malformed or already loaded.
        """
        if self._schemas is not None:
            raise SchemaDefinitionError("Schema registry is already loaded")
        if not isinstance(source, Mapping):
            raise SchemaDefinitionError("Schema source must be a mapping of event name to schema")

        schemas: dict[str, EventSchema] = {}
        for name, raw in source.items():
            if not isinstance(name, str) or not name:
                raise SchemaDefinitionError(f"Invalid event name in schema source: {name!r}")
            if not isinstance(raw, Mapping):
                raise SchemaDefinitionError(f"Schema for event '{name}' must be a mapping", event=name)
            schemas[name] = EventSchema.from_dict(name, raw)

        self._schemas = MappingProxyType(schemas)
        logger.info("Schema registry loaded", events=len(schemas))

    @property
    def is_loaded(self) -> bool:
        return self._schemas is not None

    # ─── Queries ──────────────────────────────────────

    def _require_loaded(self) -> Mapping[str, EventSchema]:
        if self._schemas is None:
            raise SchemaNotLoaded("Schema registry queried before initialisation completed")
        return self._schemas

    def lookup(self, event_name: str) -> EventSchema:
        """
        Return the schema for ``event_name``.

        Raises:
            UnknownEvent: name not registered; carries every known name
                in registration order.
        """
        schemas = self._require_loaded()
        schema = schemas.get(event_name)
        if schema is None:
            known = list(schemas)
            raise UnknownEvent(
                f"Unknown event: {event_name}. Available events: {', '.join(known)}",
                event=event_name,
                known_events=known,
            )
        return schema

    def list_event_names(self) -> list[str]:
        """Known event names in registration order."""
        return list(self._require_loaded())

    def guard_names(self) -> list[str]:
        """Every guard name referenced by any schema (deduplicated, ordered)."""
        seen: dict[str, None] = {}
        for schema in self._require_loaded().values():
            for guard in schema.guards:
                seen.setdefault(guard.name, None)
        return list(seen)

    def __len__(self) -> int:
        return len(self._require_loaded())
