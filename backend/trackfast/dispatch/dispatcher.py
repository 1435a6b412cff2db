"""
Dispatcher — concurrent fan-out of one event to every enabled provider.

Responsibilities:
    - Skip providers whose credentials are missing
    - Launch one attempt per enabled provider, all at once
    - Bound each attempt by a finite timeout
    - Settle all attempts (no short-circuit on failure)
    - Report outcomes in configured provider order
    - Never raise: every failure becomes a failed ProviderOutcome
"""

from __future__ import annotations

import asyncio
import time
from typing import Sequence

import httpx

from trackfast.core.config import settings
from trackfast.core.errors import ProviderError, ProviderTimeout, ProviderTransportError
from trackfast.core.logging import get_logger
from trackfast.dispatch.models import DispatchReport, ProviderOutcome, TrackingEvent
from trackfast.dispatch.providers import ProviderConfig


class Dispatcher:
    """
    Fans a TrackingEvent out to analytics providers.

    Usage::

        dispatcher = Dispatcher()
        report = await dispatcher.dispatch(event, build_providers())

    Pass ``client`` to reuse a long-lived httpx.AsyncClient (or a mock
    transport in tests); otherwise a client is opened per dispatch.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self.timeout = settings.PROVIDER_TIMEOUT_SECONDS if timeout is None else timeout
        if self.timeout <= 0:
            raise ValueError("Provider timeout must be a positive number of seconds")
        self._client = client
        self.logger = get_logger("dispatch.dispatcher")

    async def dispatch(
        self,
        event: TrackingEvent,
        providers: Sequence[ProviderConfig],
    ) -> DispatchReport:
        enabled = [p for p in providers if p.enabled]
        skipped = [p.provider_id for p in providers if not p.enabled]

        log = self.logger.bind(event_name=event.event_name)
        if skipped:
            log.debug("Providers skipped (not configured)", providers=skipped)
        if not enabled:
            log.info("No providers enabled, nothing to dispatch")
            return DispatchReport()

        if self._client is not None:
            outcomes = await self._fan_out(self._client, event, enabled)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                outcomes = await self._fan_out(client, event, enabled)

        report = DispatchReport(outcomes=outcomes)
        for failure in report.failed:
            log.warning(
                "Provider delivery failed",
                provider=failure.provider_id,
                error=failure.error_detail,
                latency_ms=failure.latency_ms,
            )
        log.info(
            "Dispatch finished",
            attempted=report.attempted,
            succeeded=report.succeeded,
            failed=len(report.failed),
        )
        return report

    async def _fan_out(
        self,
        client: httpx.AsyncClient,
        event: TrackingEvent,
        providers: list[ProviderConfig],
    ) -> list[ProviderOutcome]:
        # gather keeps input order regardless of completion order
        results = await asyncio.gather(
            *(self._attempt(client, event, p) for p in providers),
            return_exceptions=True,
        )

        outcomes: list[ProviderOutcome] = []
        for provider, result in zip(providers, results):
            if isinstance(result, BaseException):
                # _attempt already converts errors; this only catches cancellation leaks
                outcomes.append(ProviderOutcome(
                    provider_id=provider.provider_id,
                    succeeded=False,
                    error_detail=f"Unexpected: {result!r}",
                ))
            else:
                outcomes.append(result)
        return outcomes

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        event: TrackingEvent,
        provider: ProviderConfig,
    ) -> ProviderOutcome:
        started = time.perf_counter()

        def _elapsed_ms() -> int:
            return int((time.perf_counter() - started) * 1000)

        try:
            status_code = await asyncio.wait_for(
                self._send(client, event, provider),
                timeout=self.timeout,
            )
            return ProviderOutcome(
                provider_id=provider.provider_id,
                succeeded=True,
                latency_ms=_elapsed_ms(),
                status_code=status_code,
            )

        except ProviderError as exc:
            return ProviderOutcome(
                provider_id=provider.provider_id,
                succeeded=False,
                error_detail=f"{exc.kind}: {exc.message}",
                latency_ms=_elapsed_ms(),
                status_code=exc.status_code,
            )

        except asyncio.TimeoutError:
            exc = ProviderTimeout(
                f"no response within {self.timeout:g}s",
                provider_id=provider.provider_id,
            )
            return ProviderOutcome(
                provider_id=provider.provider_id,
                succeeded=False,
                error_detail=f"{exc.kind}: {exc.message}",
                latency_ms=_elapsed_ms(),
            )

        except Exception as exc:
            # Payload rendering bugs still count as a failed outcome
            self.logger.exception(
                "Unexpected error during provider attempt",
                provider=provider.provider_id,
            )
            return ProviderOutcome(
                provider_id=provider.provider_id,
                succeeded=False,
                error_detail=f"Unexpected: {exc}",
                latency_ms=_elapsed_ms(),
            )

    async def _send(
        self,
        client: httpx.AsyncClient,
        event: TrackingEvent,
        provider: ProviderConfig,
    ) -> int:
        """Issue the request; return the status code or raise ProviderError."""
        request = provider.build_request(event)
        try:
            response = await client.request(
                request.method,
                request.url,
                params=request.params or None,
                json=request.json,
                headers=request.headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as exc:
            raise ProviderTimeout(
                f"{type(exc).__name__} after {self.timeout:g}s",
                provider_id=provider.provider_id,
            ) from exc
        except httpx.TransportError as exc:
            raise ProviderTransportError(
                f"{type(exc).__name__}: {exc}",
                provider_id=provider.provider_id,
            ) from exc

        if not response.is_success:
            raise ProviderTransportError(
                f"HTTP {response.status_code} {response.reason_phrase}".strip(),
                provider_id=provider.provider_id,
                status_code=response.status_code,
            )
        return response.status_code
