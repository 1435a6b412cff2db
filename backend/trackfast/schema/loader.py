"""Load the declarative schema source produced by the external generator."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from trackfast.core.errors import SchemaDefinitionError
from trackfast.core.logging import get_logger
from trackfast.schema.catalog import EVENT_SCHEMAS
from trackfast.schema.registry import SchemaRegistry

logger = get_logger(__name__)


def _read_json(path: Path) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        raise SchemaDefinitionError(f"Schema source not found: {path}") from None
    except json.JSONDecodeError as exc:
        raise SchemaDefinitionError(f"Schema source {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise SchemaDefinitionError(f"Schema source {path} must contain a JSON object")
    # Generators may wrap the mapping as {"events": {...}}
    if set(data) == {"events"} and isinstance(data["events"], dict):
        return data["events"]
    return data


async def load_schema_source(path: str | Path | None = None) -> SchemaRegistry:
    """
    Build a loaded SchemaRegistry.

    Args:
        path: JSON file with ``{event_name: schema}``.  When empty, the
            bundled catalog is used.

    The file read happens in a worker thread so startup never blocks
    the event loop.
    """
    if path:
        source_path = Path(path)
        source = await asyncio.to_thread(_read_json, source_path)
        origin = str(source_path)
    else:
        source = EVENT_SCHEMAS
        origin = "bundled catalog"

    registry = SchemaRegistry.from_mapping(source)
    logger.info("Schema source loaded", origin=origin, events=registry.list_event_names())
    return registry
