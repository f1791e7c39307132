"""
catscii — Root Route Handler
==============================

What:  Handles GET / by returning a random cat picture as ASCII-art HTML.
How:   Opens the root_get span (parented on any incoming W3C trace context),
       runs CatArtService, and maps the outcome to a response.

Responses:
    200  text/html; charset=utf-8   the ASCII-art document
    500  text/plain; charset=utf-8  "Something went wrong" for ANY failure

The failure is reported inside the span, so the span carries ERROR status,
the recorded exception, and the log line carries the trace ID.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response
from opentelemetry import propagate, trace
from opentelemetry.trace import SpanKind, Status, StatusCode

from catscii.dependencies import get_cat_art_service, get_tracer
from catscii.error_handlers import failure_response, report_failure
from catscii.exceptions import CatsciiError
from catscii.services.cat_art import CatArtService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Cats"])


@router.get(
    "/",
    response_class=HTMLResponse,
    responses={
        200: {"description": "Cat picture rendered as ASCII-art HTML"},
        500: {"description": "Something went wrong", "content": {"text/plain": {}}},
    },
    summary="Random cat as ASCII art",
)
async def root_get(
    request: Request,
    service: CatArtService = Depends(get_cat_art_service),
    tracer: trace.Tracer = Depends(get_tracer),
) -> Response:
    """
    Fetch, decode and convert one cat picture.

    Only headers are inspected: User-Agent as a span attribute and
    traceparent/tracestate as the parent trace context.
    """
    parent_context = propagate.extract(request.headers)

    with tracer.start_as_current_span(
        "root_get",
        context=parent_context,
        kind=SpanKind.SERVER,
    ) as span:
        span.set_attribute("user_agent", request.headers.get("user-agent", ""))
        try:
            art = await service.get_cat_ascii_art()
        except CatsciiError as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, description=str(exc)))
            report_failure(exc)
            return failure_response()

    return HTMLResponse(content=art, status_code=200)
