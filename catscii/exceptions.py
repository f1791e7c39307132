"""
catscii — Custom Exception Hierarchy
======================================

What:  Application-specific exceptions for every way the pipeline can fail.
How:   Each exception carries a message and an optional context dict.
       The global handler (registered in main.py) logs both, reports the
       exception, and answers with one fixed plaintext 500. Neither the message
       nor the context ever reaches the client.
Who:   Raised by services; caught by the global handler.

Exception Hierarchy:
    CatsciiError (base)
    ├── StartupConfigurationError   → process exits before binding the port
    ├── ImageSourceError
    │   ├── NetworkError            → transport failure (timeout, DNS, refused)
    │   ├── UpstreamStatusError     → non-2xx from the image API
    │   ├── EmptyResultError        → search returned no candidates
    │   ├── MalformedResponseError  → search body was not the expected JSON
    │   └── PayloadTooLargeError    → download exceeded MAX_IMAGE_BYTES
    ├── DecodeError                 → bytes are not a valid image
    └── ConversionError             → ASCII transform failed
"""

from typing import Any, Dict, Optional


class CatsciiError(Exception):
    """
    Base exception for all catscii application errors.

    Attributes:
        message:  Description of the failure (logged, never returned)
        context:  Additional debug info such as URLs and status codes
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class StartupConfigurationError(CatsciiError):
    """
    Raised when a required environment credential is missing or invalid.

    When:    Settings.validate_required() during startup.
    Effect:  The entry point logs the message and exits with status 1.
             No partial startup: uvicorn is never started.
    """


# ══════════════════════════════════════════════════════════════════════════
# Image Source Errors
# ══════════════════════════════════════════════════════════════════════════

class ImageSourceError(CatsciiError):
    """Base for failures while obtaining image bytes from the remote service."""


class NetworkError(ImageSourceError):
    """
    Raised when an outbound call could not complete at the transport level.

    When:    Timeout, connection refused, DNS failure, TLS error.
    Kept distinct from UpstreamStatusError: the remote never answered.
    """

    def __init__(
        self,
        url: str,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["url"] = url
        ctx["reason"] = reason
        super().__init__(message=f"Request to {url} failed: {reason}", context=ctx)
        self.url = url


class UpstreamStatusError(ImageSourceError):
    """
    Raised when the remote answered with a non-2xx status.

    The response body is never parsed in this case.
    """

    def __init__(
        self,
        url: str,
        status_code: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["url"] = url
        ctx["status_code"] = status_code
        super().__init__(
            message=f"{url} responded with HTTP {status_code}",
            context=ctx,
        )
        self.url = url
        self.status_code = status_code


class EmptyResultError(ImageSourceError):
    """Raised when the metadata search returned an empty array."""

    def __init__(
        self,
        message: str = "The Cat API returned no images",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MalformedResponseError(ImageSourceError):
    """
    Raised when the metadata search body is not a JSON array of objects
    each carrying a string `url`.
    """

    def __init__(
        self,
        message: str = "The Cat API returned an unexpected payload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PayloadTooLargeError(ImageSourceError):
    """Raised when a download exceeds the configured MAX_IMAGE_BYTES."""

    def __init__(
        self,
        url: str,
        limit: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["url"] = url
        ctx["limit_bytes"] = limit
        super().__init__(
            message=f"Image at {url} exceeds the {limit} byte limit",
            context=ctx,
        )
        self.limit = limit


# ══════════════════════════════════════════════════════════════════════════
# Image Processing Errors
# ══════════════════════════════════════════════════════════════════════════

class DecodeError(CatsciiError):
    """Raised when downloaded bytes cannot be decoded as an image."""

    def __init__(
        self,
        message: str = "Downloaded bytes are not a valid image",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConversionError(CatsciiError):
    """Raised when the ASCII-art transform fails on a decoded image."""

    def __init__(
        self,
        message: str = "ASCII-art conversion failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
