"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Application ───────────────────────────
    APP_ENV: str = "development"
    LOG_LEVEL: str = ""
    SERVICE_NAME: str = "trackfast-api"
    LIB_NAME: str = "trackfast-server"
    LIB_VERSION: str = "0.1.0"

    # ── Event schema source ───────────────────
    # Path to a JSON file produced by the schema generator.
    # Empty means the bundled catalog is used.
    EVENT_SCHEMA_PATH: str = ""

    # ── PostHog ───────────────────────────────
    POSTHOG_KEY: str = ""
    POSTHOG_HOST: str = "https://us.i.posthog.com"

    # ── Google Analytics 4 ────────────────────
    GA4_MEASUREMENT_ID: str = ""
    GA4_API_SECRET: str = ""
    GA4_COLLECT_URL: str = "https://www.google-analytics.com/mp/collect"

    # ── Dispatch ──────────────────────────────
    PROVIDER_TIMEOUT_SECONDS: float = 5.0

    # ── Trust marker (Edge Gate → track route) ─
    TRUST_MARKER_SECRET: str = "change-this-in-production"
    TRUST_MARKER_ALGORITHM: str = "HS256"
    TRUST_MARKER_TTL_SECONDS: int = 60

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"


settings = Settings()
