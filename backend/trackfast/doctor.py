#!/usr/bin/env python3
"""
Trackfast Doctor — health checks against a running trackfast API.

Checks, in order:
    1. Environment: provider credentials present
    2. API health: GET /api/track responds
    3. Schema validation: valid / unknown / missing-field / bad-enum probes
       behave as expected
    4. Event flow: a few real events go through end to end

Usage:
    trackfast-doctor [BASE_URL]           # default http://localhost:8000
    python -m trackfast.doctor [BASE_URL]

Exit code is 0 when no check failed.
"""

from __future__ import annotations

import asyncio
import os
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from trackfast.core.constants import DoctorStatus
from trackfast.core.logging import get_logger, setup_logging

logger = get_logger("doctor")

DEFAULT_BASE_URL = "http://localhost:8000"

REQUIRED_ENV = ["POSTHOG_KEY"]
OPTIONAL_ENV = ["GA4_MEASUREMENT_ID", "GA4_API_SECRET", "POSTHOG_HOST"]

SCHEMA_PROBES: list[dict[str, Any]] = [
    {
        "name": "Valid event",
        "payload": {
            "event": "user_signed_up",
            "properties": {"email": "test@example.com", "plan": "starter", "source": "test"},
        },
        "should_pass": True,
    },
    {
        "name": "Invalid event name",
        "payload": {"event": "unknown_event", "properties": {}},
        "should_pass": False,
    },
    {
        "name": "Missing required field",
        "payload": {"event": "user_signed_up", "properties": {"plan": "starter"}},
        "should_pass": False,
    },
    {
        "name": "Invalid enum value",
        "payload": {
            "event": "user_signed_up",
            "properties": {"email": "test@example.com", "plan": "invalid_plan"},
        },
        "should_pass": False,
    },
]

FLOW_EVENTS: list[dict[str, Any]] = [
    {
        "name": "pageview",
        "properties": {"path": "/doctor-test", "referrer": "cli-doctor"},
        "description": "Basic pageview tracking",
    },
    {
        "name": "user_signed_up",
        "properties": {"email": "doctor@trackfast.dev", "plan": "starter", "source": "cli-test"},
        "description": "User registration event",
    },
    {
        "name": "feature_used",
        "properties": {"feature": "doctor-test", "location": "cli"},
        "description": "Feature usage tracking",
    },
]


@dataclass
class DoctorResult:
    test: str
    status: DoctorStatus
    message: str
    details: Any = None


@dataclass
class TrackfastDoctor:
    """Runs every check and collects DoctorResults."""

    base_url: str = DEFAULT_BASE_URL
    env: Mapping[str, str] = field(default_factory=dict)
    transport: httpx.AsyncBaseTransport | None = None
    timeout: float = 10.0
    results: list[DoctorResult] = field(default_factory=list)

    def add_result(self, test: str, status: DoctorStatus, message: str, details: Any = None) -> None:
        self.results.append(DoctorResult(test, status, message, details))

    # ─── Checks ───────────────────────────────────────────

    def check_environment(self) -> None:
        logger.info("Checking environment configuration")
        for var in REQUIRED_ENV:
            if self.env.get(var):
                self.add_result(f"Environment: {var}", DoctorStatus.PASS, f"{var} is configured")
            else:
                self.add_result(
                    f"Environment: {var}",
                    DoctorStatus.FAIL,
                    f"{var} is missing - PostHog tracking will not work",
                )
        for var in OPTIONAL_ENV:
            if self.env.get(var):
                self.add_result(f"Environment: {var}", DoctorStatus.PASS, f"{var} is configured")
            else:
                self.add_result(
                    f"Environment: {var}",
                    DoctorStatus.WARN,
                    f"{var} is not configured - this provider will be skipped",
                )

    async def check_api_health(self, client: httpx.AsyncClient) -> bool:
        logger.info("Checking API health")
        try:
            response = await client.get("/api/track")
        except httpx.HTTPError as exc:
            self.add_result("API Health", DoctorStatus.FAIL, f"Failed to connect to API: {exc}")
            return False

        if response.is_success:
            data = response.json()
            self.add_result(
                "API Health",
                DoctorStatus.PASS,
                f"API is responding ({data.get('status')})",
                data,
            )
            return True

        self.add_result(
            "API Health",
            DoctorStatus.FAIL,
            f"API returned {response.status_code}: {response.reason_phrase}",
        )
        return False

    async def check_schema_validation(self, client: httpx.AsyncClient) -> bool:
        logger.info("Testing schema validation")
        all_ok = True
        for probe in SCHEMA_PROBES:
            test = f"Schema: {probe['name']}"
            try:
                response = await client.post("/api/track", json=probe["payload"])
            except httpx.HTTPError as exc:
                self.add_result(test, DoctorStatus.FAIL, f"{probe['name']} raised: {exc}")
                all_ok = False
                continue

            details = {"status": response.status_code, "response": _safe_json(response)}
            if response.is_success == probe["should_pass"]:
                self.add_result(test, DoctorStatus.PASS, f"{probe['name']} behaved as expected", details)
            else:
                expected = "success" if probe["should_pass"] else "failure"
                got = "success" if response.is_success else "failure"
                self.add_result(
                    test,
                    DoctorStatus.FAIL,
                    f"{probe['name']} failed - expected {expected}, got {got}",
                    details,
                )
                all_ok = False
        return all_ok

    async def check_event_flow(self, client: httpx.AsyncClient) -> bool:
        logger.info("Testing complete event flow")
        all_ok = True
        for spec in FLOW_EVENTS:
            test = f"Event: {spec['name']}"
            started = time.perf_counter()
            try:
                response = await client.post(
                    "/api/track",
                    json={"event": spec["name"], "properties": spec["properties"]},
                )
            except httpx.HTTPError as exc:
                self.add_result(test, DoctorStatus.FAIL, f"{spec['description']} raised: {exc}")
                all_ok = False
                continue

            duration_ms = int((time.perf_counter() - started) * 1000)
            if response.is_success:
                self.add_result(
                    test,
                    DoctorStatus.PASS,
                    f"{spec['description']} ({duration_ms}ms)",
                    {"duration_ms": duration_ms, "response": _safe_json(response)},
                )
            else:
                self.add_result(
                    test,
                    DoctorStatus.FAIL,
                    f"{spec['description']} failed with {response.status_code}",
                )
                all_ok = False
        return all_ok

    # ─── Run ──────────────────────────────────────────────

    async def run(self) -> bool:
        """Run every check; True when nothing failed."""
        self.check_environment()

        async with httpx.AsyncClient(
            base_url=self.base_url,
            transport=self.transport,
            timeout=self.timeout,
        ) as client:
            if not await self.check_api_health(client):
                logger.error("API is not responding; is the server running?", base_url=self.base_url)
                return False
            await self.check_schema_validation(client)
            await self.check_event_flow(client)

        return not any(r.status is DoctorStatus.FAIL for r in self.results)

    def summary(self) -> dict[str, int]:
        return {
            str(status): sum(1 for r in self.results if r.status is status)
            for status in DoctorStatus
        }

    def log_results(self) -> None:
        for result in self.results:
            level = {
                DoctorStatus.PASS: logger.info,
                DoctorStatus.WARN: logger.warning,
                DoctorStatus.FAIL: logger.error,
            }[result.status]
            level(result.message, test=result.test, status=str(result.status))
        logger.info("Doctor summary", **self.summary())


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if argv and argv[0] in ("-h", "--help"):
        print(__doc__)
        return 0

    setup_logging("INFO")
    doctor = TrackfastDoctor(base_url=argv[0] if argv else DEFAULT_BASE_URL, env=dict(os.environ))
    try:
        ok = asyncio.run(doctor.run())
    except Exception as exc:
        logger.error("Doctor run failed", error=str(exc))
        return 1
    doctor.log_results()
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
