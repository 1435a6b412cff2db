"""
Event schema package — data model, registry and schema-source loading.
"""

from trackfast.schema.loader import load_schema_source
from trackfast.schema.models import EventSchema, GuardSpec, PropertyConstraint
from trackfast.schema.registry import SchemaRegistry

__all__ = [
    "EventSchema",
    "GuardSpec",
    "PropertyConstraint",
    "SchemaRegistry",
    "load_schema_source",
]
