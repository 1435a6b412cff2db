"""
ASGI middleware that runs the EdgeGate in front of the track route.

For ``POST`` requests on a gated path the body is read, passed through
the gate, and either answered directly (parse/validation failure,
internal fault) or replayed downstream with the normalized payload and
a freshly signed trust marker header.  A marker header supplied by the
client is always dropped.
"""

from __future__ import annotations

import json
from typing import Iterable

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from trackfast.core.constants import GATED_PATHS, TRUST_MARKER_HEADER, ErrorKind
from trackfast.core.logging import get_logger

logger = get_logger(__name__)

_MARKER_HEADER = TRUST_MARKER_HEADER.encode("latin-1")

# Rewritten on replay; the forwarded body is always JSON
_REPLACED_HEADERS = (b"content-length", b"content-type", _MARKER_HEADER)


class EdgeGateMiddleware:
    """Gate inbound tracking calls before they reach the dispatch boundary."""

    def __init__(self, app: ASGIApp, gated_paths: Iterable[str] = GATED_PATHS) -> None:
        self.app = app
        self.gated_paths = frozenset(gated_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] != "http"
            or scope["method"] != "POST"
            or scope["path"] not in self.gated_paths
        ):
            await self.app(scope, receive, send)
            return

        gate = getattr(scope["app"].state, "gate", None) if "app" in scope else None
        if gate is None:
            logger.error("Edge gate not initialised; rejecting tracking call", path=scope["path"])
            response = JSONResponse(
                {
                    "error": "Internal validation error",
                    "details": "Event validation system error",
                    "kind": str(ErrorKind.SCHEMA_NOT_LOADED),
                },
                status_code=500,
            )
            await response(scope, receive, send)
            return

        raw_body = await self._read_body(receive)
        if raw_body is None:
            logger.info("Client disconnected before sending the full body", path=scope["path"])
            return
        outcome = gate.process(raw_body)

        if not outcome.forwarded:
            response = JSONResponse(outcome.body, status_code=outcome.status_code)
            await response(scope, receive, send)
            return

        body = json.dumps(outcome.forwarded_payload).encode("utf-8")
        headers = [
            (name, value)
            for name, value in scope["headers"]
            if name.lower() not in _REPLACED_HEADERS
        ]
        headers.append((b"content-type", b"application/json"))
        headers.append((b"content-length", str(len(body)).encode("latin-1")))
        headers.append((_MARKER_HEADER, outcome.trust_marker.encode("latin-1")))

        await self.app({**scope, "headers": headers}, self._replay(body, receive), send)

    @staticmethod
    async def _read_body(receive: Receive) -> bytes | None:
        """Collect the request body; None when the client disconnects first."""
        chunks: list[bytes] = []
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                return None
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
        return b"".join(chunks)

    @staticmethod
    def _replay(body: bytes, receive: Receive) -> Receive:
        delivered = False

        async def replay() -> Message:
            nonlocal delivered
            if not delivered:
                delivered = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        return replay
