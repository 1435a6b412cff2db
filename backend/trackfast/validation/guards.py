"""
GuardRegistry — maps guard names from the schema to predicate functions.

Schemas only carry a guard's declarative description (name, message,
target property, params).  The validator resolves the predicate by name
at validation time; an unknown name is a configuration defect and raises
GuardNotImplemented instead of being skipped.

To add a guard:
    1. Write a predicate ``(properties, spec) -> bool`` (or a value-level
       predicate decorated with @property_guard)
    2. Register it in DEFAULT_GUARDS below
    3. Reference it by name from the schema source
"""

from __future__ import annotations

import functools
import re
from typing import Any, Callable, Iterable, Mapping

from trackfast.core.errors import GuardNotImplemented
from trackfast.schema.models import GuardSpec

GuardPredicate = Callable[[Mapping[str, Any], GuardSpec], bool]

# Pragmatic syntax check, not RFC 5322
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def property_guard(func: Callable[[Any, GuardSpec], bool]) -> GuardPredicate:
    """
    Lift a value-level check into a guard predicate.

    The wrapped check receives the value of ``spec.property``.  When that
    property is absent from the normalized set (optional, no default)
    there is nothing to check and the guard passes.
    """

    @functools.wraps(func)
    def predicate(properties: Mapping[str, Any], spec: GuardSpec) -> bool:
        if spec.property is None or spec.property not in properties:
            return True
        return func(properties[spec.property], spec)

    return predicate


# ═══════════════════════════════════════════════════════════
#  Built-in guards
# ═══════════════════════════════════════════════════════════

@property_guard
def valid_email(value: Any, spec: GuardSpec) -> bool:
    return isinstance(value, str) and bool(_EMAIL_RE.match(value))


@property_guard
def positive_number(value: Any, spec: GuardSpec) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


@property_guard
def non_empty(value: Any, spec: GuardSpec) -> bool:
    return isinstance(value, str) and value.strip() != ""


@property_guard
def currency_code(value: Any, spec: GuardSpec) -> bool:
    return isinstance(value, str) and bool(_CURRENCY_RE.match(value))


@property_guard
def relative_path(value: Any, spec: GuardSpec) -> bool:
    return isinstance(value, str) and value.startswith("/")


@property_guard
def max_length(value: Any, spec: GuardSpec) -> bool:
    limit = spec.params.get("limit")
    if not isinstance(limit, int):
        return False
    return isinstance(value, str) and len(value) <= limit


DEFAULT_GUARDS: dict[str, GuardPredicate] = {
    "valid_email": valid_email,
    "positive_number": positive_number,
    "non_empty": non_empty,
    "currency_code": currency_code,
    "relative_path": relative_path,
    "max_length": max_length,
}


class GuardRegistry:
    """Resolves guard names to predicates."""

    def __init__(self, guards: Mapping[str, GuardPredicate] | None = None) -> None:
        self._guards: dict[str, GuardPredicate] = dict(DEFAULT_GUARDS if guards is None else guards)

    def register(self, name: str, predicate: GuardPredicate) -> None:
        self._guards[name] = predicate

    def resolve(self, name: str) -> GuardPredicate:
        """
        Raises:
            GuardNotImplemented: no predicate registered under ``name``.
        """
        try:
            return self._guards[name]
        except KeyError:
            raise GuardNotImplemented(
                f"Guard '{name}' is referenced by the schema but not implemented",
                guard_names=[name],
            ) from None

    def missing(self, names: Iterable[str]) -> list[str]:
        """Return the subset of ``names`` with no registered predicate."""
        return [n for n in names if n not in self._guards]

    def list_guards(self) -> list[str]:
        return list(self._guards)
