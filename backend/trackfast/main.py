"""FastAPI application entry point."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trackfast.api.v1 import track
from trackfast.core.config import settings
from trackfast.core.logging import get_logger, setup_logging
from trackfast.dispatch.dispatcher import Dispatcher
from trackfast.dispatch.providers import build_providers, provider_health
from trackfast.gate.edge_gate import EdgeGate
from trackfast.gate.middleware import EdgeGateMiddleware
from trackfast.schema.loader import load_schema_source
from trackfast.validation.validator import Validator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    setup_logging(
        settings.LOG_LEVEL or ("DEBUG" if settings.is_development else "INFO"),
        json_output=not settings.is_development,
    )
    logger = get_logger("startup")

    # Registry must be complete before the gate accepts traffic
    registry = await load_schema_source(settings.EVENT_SCHEMA_PATH or None)
    validator = Validator(registry)
    validator.ensure_guards_resolvable()

    app.state.registry = registry
    app.state.validator = validator
    app.state.gate = EdgeGate(validator)
    app.state.providers = build_providers(settings)

    async with httpx.AsyncClient(timeout=settings.PROVIDER_TIMEOUT_SECONDS) as client:
        app.state.dispatcher = Dispatcher(client=client)
        logger.info(
            "Application starting",
            env=settings.APP_ENV,
            events=len(registry),
            providers=provider_health(app.state.providers),
        )
        yield
    logger.info("Application shutting down")


app = FastAPI(
    title="Trackfast API",
    description="Schema-validated analytics event fan-out",
    version=settings.LIB_VERSION,
    lifespan=lifespan,
)

app.add_middleware(EdgeGateMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_PREFIX = "/api"
app.include_router(track.router, prefix=API_PREFIX)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    get_logger("api").exception("Unhandled error", path=request.url.path)
    return JSONResponse(
        {"error": "Internal server error", "details": None},
        status_code=500,
    )


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Public health-check endpoint."""
    return {"status": "ok", "env": settings.APP_ENV}
