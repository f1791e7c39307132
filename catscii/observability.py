"""
catscii — Observability Shell
===============================

What:  Structured logging, crash reporting and tracing, built once at startup.
How:   setup_observability() configures all three from Settings and returns an
       Observability object. create_app() receives that object and hands its
       tracer to the services; nothing downstream reaches for process-global
       tracer state.

Components:
    ┌──────────────────────────────────────────────────────────┐
    │  Logging   stdlib logging → python-json-logger → stdout  │
    │            + request_id / trace_id / span_id per record  │
    │  Sentry    sentry-sdk with FastAPI/Starlette integrations│
    │  Tracing   OpenTelemetry SDK → OTLP/HTTP → Honeycomb     │
    └──────────────────────────────────────────────────────────┘

With TRACING_ENABLED=false the TracerProvider has no exporter: spans are still
created (so log lines still carry trace IDs and incoming trace context is
honoured) but nothing leaves the process.
"""

import logging
import sys
from dataclasses import dataclass, field
from typing import Optional

import sentry_sdk
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger.json import JsonFormatter
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from catscii import __version__
from catscii.config import Settings, parse_log_filter
from catscii.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Third-party loggers that chatter at INFO for every request.
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

INSTRUMENTATION_NAME = "catscii"


# ══════════════════════════════════════════════════════════════════════════
# Structured Logging
# ══════════════════════════════════════════════════════════════════════════

class ContextFilter(logging.Filter):
    """
    Attaches correlation fields to every log record.

    request_id comes from RequestIDMiddleware; trace_id and span_id come from
    the active OpenTelemetry span. Outside a request/span they are empty.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")
        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            record.trace_id = format(span_context.trace_id, "032x")
            record.span_id = format(span_context.span_id, "016x")
        else:
            record.trace_id = ""
            record.span_id = ""
        return True


def build_log_handler() -> logging.Handler:
    """Stdout handler emitting one JSON object per record."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s "
            "%(request_id)s %(trace_id)s %(span_id)s",
            rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    handler.addFilter(ContextFilter())
    return handler


def setup_logging(log_filter: str) -> None:
    """
    Configure structured JSON logging for the entire process.

    What:    Replaces any existing root configuration with one JSON stdout
             handler and applies the filter spec (see config.parse_log_filter).
    When:    Called once, first thing in setup_observability().
    """
    root_level, targets = parse_log_filter(log_filter)

    logging.basicConfig(
        level=root_level,
        handlers=[build_log_handler()],
        force=True,
    )

    for name in NOISY_LOGGERS:
        if name not in targets:
            logging.getLogger(name).setLevel(max(logging.WARNING, root_level))

    for name, level in targets.items():
        logging.getLogger(name).setLevel(level)


# ══════════════════════════════════════════════════════════════════════════
# Crash Reporting
# ══════════════════════════════════════════════════════════════════════════

def init_sentry(settings: Settings) -> None:
    """
    Initialise the Sentry SDK.

    Log records become breadcrumbs only (event_level=None): handled pipeline
    errors are reported explicitly with capture_exception() in the exception
    handler, so each failed request yields exactly one event. Unhandled
    faults (GET /panic) are captured by the Starlette/FastAPI integrations.
    """
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        release=settings.sentry_release,
        environment=settings.sentry_environment,
        integrations=[
            StarletteIntegration(),
            FastApiIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=None),
        ],
    )
    logger.info(
        "Sentry initialised",
        extra={"release": settings.sentry_release, "environment": settings.sentry_environment},
    )


# ══════════════════════════════════════════════════════════════════════════
# Tracing
# ══════════════════════════════════════════════════════════════════════════

def build_tracer_provider(settings: Settings) -> TracerProvider:
    """
    Create the TracerProvider for this process.

    The exporter speaks OTLP over HTTP; Honeycomb authenticates it with the
    x-honeycomb-team header.
    """
    resource = Resource.create(
        {
            SERVICE_NAME: settings.service_name,
            SERVICE_VERSION: __version__,
        }
    )
    provider = TracerProvider(resource=resource)

    if settings.tracing_enabled:
        exporter = OTLPSpanExporter(
            endpoint=settings.tracing_endpoint,
            headers={"x-honeycomb-team": settings.honeycomb_api_key},
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info("Exporting traces to %s", settings.tracing_endpoint)
    else:
        logger.info("Trace export disabled (TRACING_ENABLED=false)")

    return provider


# ══════════════════════════════════════════════════════════════════════════
# Observability Handle
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class Observability:
    """
    Process-wide observability state, constructed once and passed by reference.

    Attributes:
        tracer_provider: Owns span processors/exporters; flushed on shutdown.
        sentry_enabled:  Whether sentry_sdk.init() ran in this process.
        tracer:          Tracer handed to the route and services.
    """

    tracer_provider: TracerProvider
    sentry_enabled: bool = False
    tracer: trace.Tracer = field(init=False)

    def __post_init__(self) -> None:
        self.tracer = self.tracer_provider.get_tracer(INSTRUMENTATION_NAME, __version__)

    def shutdown(self, timeout: Optional[float] = 2.0) -> None:
        """Flush pending spans and Sentry events before the process exits."""
        self.tracer_provider.shutdown()
        if self.sentry_enabled:
            sentry_sdk.flush(timeout=timeout)


def setup_observability(settings: Settings) -> Observability:
    """
    Configure logging, Sentry and tracing from settings.

    Order:
        1. Logging first, so the next two steps can log
        2. Sentry
        3. TracerProvider (with exporter when tracing is enabled)
    """
    setup_logging(settings.log_filter)
    init_sentry(settings)
    provider = build_tracer_provider(settings)
    return Observability(tracer_provider=provider, sentry_enabled=True)
