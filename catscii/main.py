"""
catscii — FastAPI Application Factory
=======================================

What:  Creates and configures the FastAPI application and runs it.
How:   create_app() validates settings, builds observability, registers
       middleware, exception handlers and routes. run() is the console entry
       point: it builds the app first and starts uvicorn only if that worked.
Who:   `catscii` console script, `python -m catscii`, or
       `uvicorn catscii.main:create_app --factory`.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────┐ ┌─────────────────┐               │
    │  │   Req ID     │→│  Access Logging │               │
    │  └──────────────┘ └─────────────────┘               │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ GET /        │ │ GET /health  │ │ GET /panic* │  │
    │  └──────────────┘ └──────────────┘ └─────────────┘  │
    │                                   * debug only      │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ CatsciiError→500 │ Exception→500 (re-raised) │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup (before the port is bound):
    1. Load and validate settings (fail fast on missing credentials)
    2. Configure logging, Sentry and tracing
    Lifespan startup:
    3. Create the shared outbound HTTP client and the pipeline service
    Shutdown (SIGINT/SIGTERM, handled by uvicorn):
    1. Stop accepting connections, let in-flight requests finish
    2. Close the HTTP client
    3. Flush spans and Sentry events
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from catscii import __version__
from catscii.config import Settings
from catscii.error_handlers import register_exception_handlers
from catscii.exceptions import StartupConfigurationError
from catscii.middleware.logging import RequestLoggingMiddleware
from catscii.middleware.request_id import RequestIDMiddleware
from catscii.observability import Observability, setup_observability
from catscii.routes import debug, health, root
from catscii.services.cat_art import build_cat_art_service
from catscii.services.image_source import build_http_client, build_image_source

logger = logging.getLogger(__name__)


def install_services(app: FastAPI, client: httpx.AsyncClient) -> None:
    """Build the request pipeline around an outbound client and store it on app.state."""
    settings: Settings = app.state.settings
    tracer = app.state.observability.tracer
    image_source = build_image_source(settings, client, tracer)
    app.state.http_client = client
    app.state.cat_art_service = build_cat_art_service(settings, image_source, tracer)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage the outbound HTTP client and flush telemetry on shutdown.

    When create_app() was given an http_client (tests), the pipeline already
    exists and the client belongs to the caller, so it is left open.
    """
    settings: Settings = app.state.settings
    observability: Observability = app.state.observability

    owns_client = app.state.cat_art_service is None
    if owns_client:
        install_services(app, build_http_client(settings))

    logger.info(
        "catscii %s listening on %s:%d (image source: %s)",
        __version__,
        settings.host,
        settings.port,
        settings.image_source,
    )

    yield

    logger.warning("Initiating graceful shutdown")
    if owns_client:
        await app.state.http_client.aclose()
    observability.shutdown()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    observability: Optional[Observability] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings:       Defaults to Settings() read from the environment.
        observability:  Defaults to setup_observability(settings).
        http_client:    Outbound client to use instead of one owned by the
                        lifespan; the pipeline is built immediately.

    Raises:
        StartupConfigurationError: A required credential is missing.
    """
    settings = settings or Settings()
    settings.validate_required()
    observability = observability or setup_observability(settings)

    app = FastAPI(
        title="catscii",
        description="Random cat pictures rendered as ASCII-art HTML.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.observability = observability
    app.state.http_client = None
    app.state.cat_art_service = None

    if http_client is not None:
        install_services(app, http_client)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → routes.
    app.add_middleware(RequestLoggingMiddleware, skip_paths=settings.access_log_skip_paths)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(root.router)
    app.include_router(health.router)
    if settings.enable_panic_route:
        logger.warning("Debug route GET /panic is enabled")
        app.include_router(debug.router)

    return app


# ══════════════════════════════════════════════════════════════════════════
# Entry Point
# ══════════════════════════════════════════════════════════════════════════

def run() -> None:
    """
    Console entry point.

    Configuration problems abort here with exit status 1, before uvicorn is
    started and therefore before the port is bound.
    """
    try:
        settings = Settings()
        app = create_app(settings)
    except (StartupConfigurationError, ValidationError) as e:
        # Logging may not be configured yet; fall back to stderr.
        if not logging.getLogger().handlers:
            logging.basicConfig(stream=sys.stderr, level=logging.INFO)
        logger.critical("Startup aborted: %s", e)
        raise SystemExit(1) from e

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
        log_config=None,
    )
