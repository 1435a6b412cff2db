"""
EdgeGate: validates inbound tracking payloads before the dispatch boundary.

Per-request state machine::

    RECEIVED → PARSING_PAYLOAD → PARSE_FAILED                       (400)
                               → VALIDATING → VALIDATION_FAILED     (400)
                                            → VALIDATED → FORWARDED (marker attached)
    any unexpected fault                    → INTERNAL_FAULT        (500)

``process`` never raises.  Validation failures produce a structured,
machine-parseable client error; internal faults are logged in full and
answered with a generic body.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError

from trackfast.core.constants import ErrorKind, GateState
from trackfast.core.errors import InternalFault, ParseFailed
from trackfast.core.logging import get_logger
from trackfast.core.security import create_trust_marker
from trackfast.validation.validator import ValidationResult, Validator

logger = get_logger(__name__)

# Same parser TrackRequest.timestamp uses downstream
_TIMESTAMP = TypeAdapter(datetime)


def _is_timestamp(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        _TIMESTAMP.validate_python(value)
    except ValidationError:
        return False
    return True


@dataclass
class GateOutcome:
    """
    Terminal result of one pass through the gate.

    Args:
        state: Terminal GateState.
        status_code: HTTP status to answer with when not forwarded.
        body: Response body when not forwarded.
        forwarded_payload: Payload handed downstream when forwarded
            (normalized properties, original extra fields).
        trust_marker: Signed marker travelling with forwarded_payload.
        history: Every state visited, in order.
    """

    state: GateState
    status_code: int = 200
    body: dict[str, Any] | None = None
    forwarded_payload: dict[str, Any] | None = None
    trust_marker: str | None = None
    validated_at: datetime | None = None
    history: list[GateState] = field(default_factory=list)

    @property
    def forwarded(self) -> bool:
        return self.state is GateState.FORWARDED


class EdgeGate:
    """Parses, validates and marks inbound tracking payloads."""

    def __init__(
        self,
        validator: Validator,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.validator = validator
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def process(self, raw_body: bytes | str) -> GateOutcome:
        history = [GateState.RECEIVED]

        def _finish(state: GateState, **kwargs) -> GateOutcome:
            history.append(state)
            return GateOutcome(state=state, history=history, **kwargs)

        try:
            history.append(GateState.PARSING_PAYLOAD)
            try:
                payload = self.parse(raw_body)
            except ParseFailed as exc:
                logger.info("Tracking payload rejected", kind=str(exc.kind), reason=exc.message)
                return _finish(
                    GateState.PARSE_FAILED,
                    status_code=400,
                    body={
                        "error": exc.message,
                        "details": exc.details.get("hint", exc.message),
                        "kind": str(exc.kind),
                    },
                )

            event_name: str = payload["event"]
            properties: dict[str, Any] = payload.get("properties") or {}

            history.append(GateState.VALIDATING)
            result = self.validator.validate(event_name, properties)
            if not result.passed:
                return _finish(
                    GateState.VALIDATION_FAILED,
                    status_code=400,
                    body=self.failure_body(result, properties),
                )

            history.append(GateState.VALIDATED)
            validated_at = self._clock()
            forwarded = {**payload, "properties": result.normalized_properties}
            marker = create_trust_marker(
                event_name,
                result.normalized_properties or {},
                validated_at=validated_at,
            )
            logger.debug("Tracking payload validated", event_name=event_name)
            return _finish(
                GateState.FORWARDED,
                forwarded_payload=forwarded,
                trust_marker=marker,
                validated_at=validated_at,
            )

        except Exception as exc:
            fault = InternalFault("Event validation system error", details={"cause": repr(exc)})
            logger.exception(
                "Edge gate internal fault",
                states=[str(s) for s in history],
                **fault.details,
            )
            return _finish(
                GateState.INTERNAL_FAULT,
                status_code=500,
                body={
                    "error": "Internal validation error",
                    "details": fault.message,
                    "kind": str(fault.kind),
                },
            )

    # ─── Parsing ──────────────────────────────────────

    @staticmethod
    def parse(raw_body: bytes | str) -> dict[str, Any]:
        """
        Decode and shape-check a tracking payload.

        Raises:
            ParseFailed: not JSON, not an object, bad ``event``,
                ``properties``, ``userId`` or ``timestamp``.
        """
        try:
            payload = json.loads(raw_body)
        except (ValueError, TypeError):
            raise ParseFailed(
                "Invalid JSON payload",
                details={"hint": "Request body must be valid JSON"},
            ) from None

        if not isinstance(payload, dict):
            raise ParseFailed(
                "Invalid JSON payload",
                details={"hint": "Request body must be a JSON object"},
            )

        event = payload.get("event")
        if not isinstance(event, str) or not event:
            raise ParseFailed(
                "Missing or invalid event name",
                details={"hint": "Event must be a non-empty string"},
            )

        properties = payload.get("properties")
        if properties is not None and not isinstance(properties, dict):
            raise ParseFailed(
                "Invalid event properties",
                event=event,
                details={"hint": "Properties must be a JSON object"},
            )

        user_id = payload.get("userId")
        if user_id is not None and not isinstance(user_id, str):
            raise ParseFailed(
                "Invalid userId",
                event=event,
                details={"hint": "userId must be a string"},
            )

        timestamp = payload.get("timestamp")
        if timestamp is not None and not _is_timestamp(timestamp):
            raise ParseFailed(
                "Invalid timestamp",
                event=event,
                details={"hint": "Timestamp must be an ISO-8601 date-time string"},
            )
        return payload

    # ─── Responses ────────────────────────────────────

    @staticmethod
    def failure_body(result: ValidationResult, properties: dict[str, Any]) -> dict[str, Any]:
        """Structured client error for a failed ValidationResult."""
        if result.failure_kind is ErrorKind.UNKNOWN_EVENT:
            known = result.details.get("known_events", [])
            return {
                "error": f"Unknown event: {result.event}",
                "details": f"Available events: {', '.join(known)}",
                "kind": str(result.failure_kind),
                "event": result.event,
                "availableEvents": known,
            }
        return {
            "error": "Event validation failed",
            "details": result.failure_reason,
            "kind": str(result.failure_kind),
            "event": result.event,
            "properties": properties,
            "violation": {k: v for k, v in result.details.items() if k != "known_events"},
        }
