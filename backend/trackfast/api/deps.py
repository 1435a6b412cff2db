"""Shared dependencies for API routes."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from trackfast.dispatch.dispatcher import Dispatcher
from trackfast.dispatch.providers import ProviderConfig
from trackfast.validation.validator import Validator


def _state_attr(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is still starting",
        )
    return value


def get_validator(request: Request) -> Validator:
    """Validator built at startup from the loaded schema registry."""
    return _state_attr(request, "validator")


def get_dispatcher(request: Request) -> Dispatcher:
    return _state_attr(request, "dispatcher")


def get_providers(request: Request) -> list[ProviderConfig]:
    """Configured providers in dispatch order."""
    return _state_attr(request, "providers")
