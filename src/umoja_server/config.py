"""Server configuration — reads settings from environment variables.

Network and logging settings have local-development defaults.  Database
URLs and the OpenAI key have none: when they are missing the server still
starts, and requests that need them fail with a configuration error.
"""

import os
from dataclasses import dataclass, field

from umoja_db.config import get_async_url, get_readonly_async_url

from umoja_assessment.constants import DEFAULT_ANALYSIS_MODEL, DEFAULT_LLM_TIMEOUT_SECONDS

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    # Trusted proxy secret: when set, every request that carries
    # X-User-ID must also carry X-Proxy-Secret matching this value.
    trusted_proxy_secret: str | None = None

    # Service-role and read-only (catalog) asyncpg URLs
    database_url: str | None = None
    readonly_database_url: str | None = None

    # Profile analysis
    openai_api_key: str | None = None
    openai_model: str = DEFAULT_ANALYSIS_MODEL
    llm_timeout_seconds: float = DEFAULT_LLM_TIMEOUT_SECONDS

    # Whether a user may hold several in_progress sessions for one bucket
    allow_concurrent_sessions: bool = True


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*``, database and OpenAI environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        trusted_proxy_secret=os.getenv("TRUSTED_PROXY_SECRET") or None,
        database_url=get_async_url(),
        readonly_database_url=get_readonly_async_url(),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_ANALYSIS_MODEL),
        llm_timeout_seconds=float(
            os.getenv("LLM_TIMEOUT_SECONDS", str(DEFAULT_LLM_TIMEOUT_SECONDS))
        ),
        allow_concurrent_sessions=(
            os.getenv("ALLOW_CONCURRENT_SESSIONS", "true").strip().lower() in _TRUE_VALUES
        ),
    )
