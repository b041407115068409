"""
AI Notes Backend: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the collaborator clients, stores them on
       app.state, registers middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn ainotes.main:app`); tests call create_app() with
       fake collaborators.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware: RateLimit → RequestID → Logging → Gate      │
    │                                                          │
    │  Routes:  POST /api/summarize   GET /  + form posts      │
    │           GET|POST /login       GET /health              │
    │                                                          │
    │  app.state: settings, data_service, summarizer,          │
    │             summary_gateway, registry                    │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, report missing credentials
    Shutdown: close both collaborators' connection pools
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from ainotes import __version__
from ainotes.client.gateways import LocalSummaryGateway
from ainotes.client.registry import ClientRegistry
from ainotes.config import Settings, get_settings
from ainotes.exceptions import (
    AINotesError,
    AuthenticationError,
    ConfigurationError,
    DataServiceError,
    RateLimitExceededError,
    SummarizationError,
    ValidationError,
)
from ainotes.middleware.logging import RequestLoggingMiddleware
from ainotes.middleware.rate_limit import RateLimitMiddleware
from ainotes.middleware.request_id import (
    RequestContextFilter,
    RequestIDMiddleware,
    request_id_var,
)
from ainotes.middleware.session_gate import SessionGateMiddleware
from ainotes.routes import auth, health, pages, summarize
from ainotes.services.data_service import DataServiceClient
from ainotes.services.groq_service import GroqSummaryService
from ainotes.services.llm_base import SummaryProvider

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once for the whole application.

    Format:
        2024-01-15T12:00:00 [INFO] ainotes.access [a1b2c3d4 user-1@Xk3v9QaB]: GET / 200 12.3ms ...
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s %(session)s]: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Per-request noise from the server and the HTTP client stack
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("AI Notes %s starting up...", __version__)
    logger.info("Data service: %s", settings.supabase_url)

    # The app still boots: login and health keep working without them
    for problem in settings.missing_credentials():
        logger.error("Configuration problem: %s", problem)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("AI Notes shutting down...")
    await app.state.summarizer.aclose()
    await app.state.data_service.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "request_id": request_id_var.get("")},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy to `{"error": ..., "request_id": ...}` bodies.

        ValidationError         → 400
        AuthenticationError     → 401
        RateLimitExceededError  → 429
        ConfigurationError      → 500
        SummarizationError      → 500 (upstream status kept in the message)
        DataServiceError        → 502
        AINotesError (base)     → 500
        Exception (fallback)    → 500, generic message, stack trace logged only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s | Context: %s", exc.message, exc.context)
        return _error(400, exc.message)

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        logger.error("Configuration error: %s | Context: %s", exc.message, exc.context)
        return _error(500, exc.message)

    @app.exception_handler(SummarizationError)
    async def handle_summarization_error(request: Request, exc: SummarizationError):
        logger.error("Summarization failed: %s", exc.message)
        return _error(500, exc.message)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        logger.warning("Authentication rejected: %s", exc.message)
        return _error(401, exc.message)

    @app.exception_handler(DataServiceError)
    async def handle_data_service_error(request: Request, exc: DataServiceError):
        logger.error("Data service error: %s | Context: %s", exc.message, exc.context)
        return _error(502, exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error(429, exc.message, headers={"Retry-After": str(exc.retry_after)})

    @app.exception_handler(AINotesError)
    async def handle_app_error(request: Request, exc: AINotesError):
        logger.error("Application error: %s | Context: %s", exc.message, exc.context)
        return _error(500, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", exc, exc_info=True)
        return _error(500, "An unexpected error occurred. Please try again.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    data_service: Optional[DataServiceClient] = None,
    summarizer: Optional[SummaryProvider] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        settings:     Defaults to a fresh Settings() from the environment
        data_service: Defaults to a DataServiceClient built from settings
        summarizer:   Defaults to a GroqSummaryService built from settings

    The collaborators are built here rather than in the lifespan so the app
    is usable under transports that do not run lifespan events.
    """
    settings = settings or get_settings()
    data_service = data_service or DataServiceClient.from_settings(settings)
    summarizer = summarizer or GroqSummaryService.from_settings(settings)
    summary_gateway = LocalSummaryGateway(summarizer)

    app = FastAPI(
        title="AI Notes",
        description="Notes with AI summaries, backed by Supabase and Groq.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.data_service = data_service
    app.state.summarizer = summarizer
    app.state.summary_gateway = summary_gateway
    app.state.registry = ClientRegistry(data_service, summary_gateway)

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SessionGateMiddleware, settings=settings)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window=settings.rate_limit_window,
    )

    register_exception_handlers(app)

    app.include_router(summarize.router)
    app.include_router(pages.router)
    app.include_router(auth.router)
    app.include_router(health.router)

    return app


app = create_app()
