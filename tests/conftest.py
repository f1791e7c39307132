"""
catscii — Test Configuration (conftest.py)
============================================

What:  Shared pytest fixtures for the entire test suite.
How:   No real network: the image API is simulated with httpx.MockTransport
       and the app is driven through httpx.ASGITransport. Spans are captured
       with the OpenTelemetry SDK's InMemorySpanExporter. Image fixtures are
       generated with Pillow.

Fixture Overview:
    ├── span_exporter / observability / tracer: in-memory tracing
    ├── jpeg_bytes / png_bytes / tall_png_bytes: real encoded images
    ├── make_upstream: httpx.AsyncClient backed by a MockTransport handler
    └── make_test_client: app built around a simulated upstream
"""

import io
import logging
import os
from typing import Any, Callable, Dict, List

import httpx
import pytest
import pytest_asyncio
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from PIL import Image

from catscii.config import Settings
from catscii.main import create_app
from catscii.observability import Observability

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Keep a developer's real credentials out of the test run.
for _var in ("SENTRY_DSN", "HONEYCOMB_API_KEY", "TRACING_ENABLED", "IMAGE_SOURCE"):
    os.environ.pop(_var, None)

TEST_DSN = "https://public@o0.ingest.sentry.io/0"
CATAAS_URL = "https://cataas.test/cat"
SEARCH_URL = "https://thecatapi.test/v1/images/search"


def make_settings(**overrides: Any) -> Settings:
    """Settings for tests: valid credentials, no .env file, quiet logging."""
    values: Dict[str, Any] = {
        "sentry_dsn": TEST_DSN,
        "log_filter": "warn",
        "cataas_url": CATAAS_URL,
        "thecatapi_search_url": SEARCH_URL,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def encode_image(size, fmt: str, color=(200, 120, 40)) -> bytes:
    """Encode a small gradient image so the ASCII output is not uniform."""
    img = Image.new("RGB", size, color)
    for x in range(size[0]):
        for y in range(size[1]):
            img.putpixel((x, y), ((x * 4) % 256, (y * 4) % 256, color[2]))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


# ══════════════════════════════════════════════════════════════════════════
# Tracing Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def observability(span_exporter) -> Observability:
    """Observability with in-memory spans and no Sentry or log setup."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return Observability(tracer_provider=provider, sentry_enabled=False)


@pytest.fixture
def tracer(observability):
    return observability.tracer


# ══════════════════════════════════════════════════════════════════════════
# Image Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def jpeg_bytes() -> bytes:
    """A valid 64x48 JPEG."""
    return encode_image((64, 48), "JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    """A valid 40x40 PNG."""
    return encode_image((40, 40), "PNG")


@pytest.fixture
def tall_png_bytes() -> bytes:
    """A valid 20x80 PNG (four times taller than wide)."""
    return encode_image((20, 80), "PNG")


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

Handler = Callable[[httpx.Request], httpx.Response]


@pytest_asyncio.fixture
async def make_upstream():
    """
    Factory for outbound clients whose responses come from a handler.

    Usage:
        client = make_upstream(lambda request: httpx.Response(200, content=b"..."))
    """
    clients: List[httpx.AsyncClient] = []

    def factory(handler: Handler) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()


@pytest_asyncio.fixture
async def make_test_client(observability, make_upstream):
    """
    Factory for an AsyncClient talking to a freshly built app.

    Args (of the returned factory):
        handler:               Simulated image API
        raise_app_exceptions:  False to observe unhandled faults as 500s
        **overrides:           Settings overrides

    Usage:
        client = make_test_client(handler, image_source="thecatapi")
        response = await client.get("/")
    """
    clients: List[httpx.AsyncClient] = []

    def factory(
        handler: Handler,
        raise_app_exceptions: bool = True,
        **overrides: Any,
    ) -> httpx.AsyncClient:
        app = create_app(
            make_settings(**overrides),
            observability=observability,
            http_client=make_upstream(handler),
        )
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        client = httpx.AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()


@pytest.fixture
def restore_logging():
    """Undo setup_logging() side effects on the root and library loggers."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    names = ("httpx", "httpcore", "uvicorn.access", "catscii", "catscii.services")
    saved_levels = {name: logging.getLogger(name).level for name in names}
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    for name, level in saved_levels.items():
        logging.getLogger(name).setLevel(level)
