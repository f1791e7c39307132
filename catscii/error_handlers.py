"""
catscii — Failure Reporting and Exception Handlers
====================================================

What:  Maps every failure to one uniform client response and reports the
       underlying error server-side.
How:   report_failure() logs the error with its context and traceback and
       sends it to Sentry; failure_response() builds the fixed plaintext 500.

Client-visible contract:
    Every failure, whatever its cause, is answered with
        HTTP 500
        Content-Type: text/plain; charset=utf-8
        Body: Something went wrong
    so two different errors produce byte-identical responses. Details
    (URLs, status codes, decoder messages) appear only in logs and Sentry.
"""

import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from catscii.exceptions import CatsciiError

logger = logging.getLogger(__name__)

FAILURE_STATUS = 500
FAILURE_BODY = "Something went wrong"


def failure_response() -> PlainTextResponse:
    return PlainTextResponse(FAILURE_BODY, status_code=FAILURE_STATUS)


def report_failure(exc: Exception) -> None:
    """
    Log and report one failed request.

    The log record is emitted while the request's span is still current, so
    it carries the trace and span IDs alongside the request ID.
    """
    context = exc.context if isinstance(exc, CatsciiError) else {}
    logger.error(
        "Request failed: %s: %s",
        type(exc).__name__,
        exc,
        exc_info=exc,
        extra={"error_type": type(exc).__name__, "error_context": context},
    )
    sentry_sdk.capture_exception(exc)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for errors escaping a route.

    Handler hierarchy:
        CatsciiError  → reported, uniform 500 (GET / reports its own pipeline
                        failures; this catches domain errors raised before
                        a route body runs, e.g. by a dependency)
        Exception     → uniform 500; Starlette re-raises it afterwards so
                        uvicorn and the Sentry integration see the fault
    """

    @app.exception_handler(CatsciiError)
    async def handle_catscii_error(request: Request, exc: CatsciiError):
        report_failure(exc)
        return failure_response()

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        # Reporting is left to the Sentry integration; the exception is re-raised.
        logger.error("Unhandled error: %s", exc, exc_info=exc)
        return failure_response()
