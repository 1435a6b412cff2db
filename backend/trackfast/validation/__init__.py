"""Event validation — guard predicates and the schema-driven validator."""

from trackfast.validation.guards import DEFAULT_GUARDS, GuardRegistry
from trackfast.validation.validator import ValidationResult, Validator

__all__ = ["DEFAULT_GUARDS", "GuardRegistry", "ValidationResult", "Validator"]
