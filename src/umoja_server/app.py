"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that builds DB engines, services and the LLM client once
  - CORS middleware
  - Global exception handlers (SDK ``UmojaError`` → status code + message)
  - All API routes mounted under ``/api``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``umoja-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from umoja_db.engine import build_engine, build_session_factory, dispose_engine

from umoja_assessment.accounts import AccountService
from umoja_assessment.analysis import AnalysisService
from umoja_assessment.catalog import CatalogReader
from umoja_assessment.errors import UmojaError
from umoja_assessment.guardian import GuardianLinkResolver
from umoja_assessment.llm import OpenAIProfileAnalyzer
from umoja_assessment.prompt import PromptManager
from umoja_assessment.recorder import AssessmentRecorder

from umoja_server.config import ServerSettings, load_settings
from umoja_server.errors import (
    generic_error_handler,
    http_exception_handler,
    umoja_error_handler,
    validation_error_handler,
)
from umoja_server.routes import register_routes

logger = logging.getLogger(__name__)


def build_services(app: FastAPI, settings: ServerSettings) -> None:
    """Create the stateless SDK services and stash them on ``app.state``."""
    app.state.accounts = AccountService()
    app.state.catalog = CatalogReader()
    app.state.recorder = AssessmentRecorder(
        allow_concurrent_sessions=settings.allow_concurrent_sessions,
    )
    app.state.guardian_resolver = GuardianLinkResolver()


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Build the service-role engine and, when a distinct URL is given,
         the read-only catalog engine
      2. Build the SDK services
      3. Build the OpenAI client and analysis service if a key is set
      4. Stash everything on ``app.state`` for dependency injection

    Missing database URLs or API key do not abort startup; the requests
    that need them fail with a configuration error instead.

    Shutdown:
      1. Close the OpenAI client
      2. Dispose the database engines' connection pools
    """
    settings: ServerSettings = app.state.settings

    # --- Database ---
    engine = readonly_engine = None
    if settings.database_url:
        engine = build_engine(settings.database_url)
        app.state.session_factory = build_session_factory(engine)
    else:
        logger.warning("No database URL configured; data endpoints will fail")
    if settings.readonly_database_url and settings.readonly_database_url != settings.database_url:
        readonly_engine = build_engine(settings.readonly_database_url)
        app.state.readonly_session_factory = build_session_factory(readonly_engine)
    elif engine is not None:
        app.state.readonly_session_factory = app.state.session_factory
    app.state.engine = engine

    # --- Services ---
    build_services(app, settings)

    # --- Analysis backend ---
    llm_client = None
    if settings.openai_api_key:
        llm_client = AsyncOpenAI(api_key=settings.openai_api_key)
        analyzer = OpenAIProfileAnalyzer(
            llm_client,
            model=settings.openai_model,
            timeout=settings.llm_timeout_seconds,
        )
        app.state.analysis = AnalysisService(analyzer, prompts=PromptManager())
        logger.info("Analysis enabled: model=%s", settings.openai_model)
    else:
        app.state.analysis = None
        logger.warning("OPENAI_API_KEY not set; analysis endpoint will fail")

    yield

    # --- Shutdown ---
    if llm_client is not None:
        await llm_client.close()
    await dispose_engine(readonly_engine)
    await dispose_engine(engine)
    logger.info("Database engines disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="UMOJA API Server",
        description="REST API for the UMOJA learner assessment platform",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(UmojaError, umoja_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api prefix) ---
    @app.get("/health")
    async def health(request: Request) -> dict:
        """Readiness probe — verifies DB connectivity."""
        engine = getattr(request.app.state, "engine", None)
        if engine is None:
            return {"status": "error", "detail": "database not configured"}
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok"}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": str(exc)}

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn umoja_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``umoja-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "umoja_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
