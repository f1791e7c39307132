"""
catscii — Image Source Clients
================================

What:  Obtain one cat image's raw bytes from a third-party API.
How:   ImageSource is the abstract interface; two concrete clients implement
       the two call patterns the service supports:

         CataasImageSource       GET https://cataas.com/cat → bytes
         TheCatApiImageSource    GET /v1/images/search → [{"url": ...}]
                                 GET <last url> → bytes

Who:   Called by CatArtService once per GET / request.

Failure rules (shared by both clients):
    - transport failure (timeout, DNS, refused)  → NetworkError
    - any non-2xx status                         → UpstreamStatusError
      (the body is not read or parsed)
    - download larger than MAX_IMAGE_BYTES       → PayloadTooLargeError
    - every call is attempted exactly once; there is no retry

Every outbound call runs in its own span with http.url / http.status_code.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from opentelemetry import trace

from catscii import __version__
from catscii.config import Settings
from catscii.exceptions import (
    EmptyResultError,
    MalformedResponseError,
    NetworkError,
    PayloadTooLargeError,
    UpstreamStatusError,
)

logger = logging.getLogger(__name__)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """
    Create the shared outbound client.

    One AsyncClient serves every request: it pools connections and is safe
    for concurrent use. The timeout applies to each individual call.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers={"User-Agent": f"{settings.service_name}/{__version__}"},
    )


# ══════════════════════════════════════════════════════════════════════════
# Abstract Interface
# ══════════════════════════════════════════════════════════════════════════

class ImageSource(ABC):
    """
    Abstract interface for fetching one random image.

    Contract:
        - fetch_image() returns the raw, undecoded bytes of one image
        - Implementations raise only ImageSourceError subclasses
        - No retries; any failure propagates immediately
    """

    name: str = "abstract"

    def __init__(
        self,
        client: httpx.AsyncClient,
        tracer: trace.Tracer,
        max_bytes: int,
    ):
        self.client = client
        self.tracer = tracer
        self.max_bytes = max_bytes

    @abstractmethod
    async def fetch_image(self) -> bytes:
        """
        Fetch one image.

        Returns:
            bytes: Raw image bytes, at most max_bytes long.

        Raises:
            NetworkError, UpstreamStatusError, PayloadTooLargeError,
            and (metadata clients only) EmptyResultError,
            MalformedResponseError.
        """
        ...

    async def download_file(self, url: str) -> bytes:
        """
        Stream a URL into memory, enforcing the size cap.

        The Content-Length header is checked first so an oversized download is
        rejected before any body is read; the running byte count covers
        servers that omit or understate it.
        """
        with self.tracer.start_as_current_span("download_file") as span:
            span.set_attribute("http.url", url)
            try:
                async with self.client.stream("GET", url) as response:
                    span.set_attribute("http.status_code", response.status_code)
                    _raise_for_status(response)

                    declared = response.headers.get("Content-Length")
                    if declared is not None and declared.isdigit() and int(declared) > self.max_bytes:
                        raise PayloadTooLargeError(
                            url=url,
                            limit=self.max_bytes,
                            context={"content_length": int(declared)},
                        )

                    chunks = []
                    received = 0
                    async for chunk in response.aiter_bytes():
                        received += len(chunk)
                        if received > self.max_bytes:
                            raise PayloadTooLargeError(url=url, limit=self.max_bytes)
                        chunks.append(chunk)
            except httpx.RequestError as e:
                raise _network_error(url, e) from e

            span.set_attribute("http.response_content_length", received)
            logger.debug("Downloaded %d bytes from %s", received, url)
            return b"".join(chunks)


def _raise_for_status(response: httpx.Response) -> None:
    if not response.is_success:
        raise UpstreamStatusError(
            url=str(response.request.url),
            status_code=response.status_code,
        )


def _network_error(url: str, exc: httpx.RequestError) -> NetworkError:
    return NetworkError(
        url=url,
        reason=str(exc) or type(exc).__name__,
        context={"error_type": type(exc).__name__},
    )


# ══════════════════════════════════════════════════════════════════════════
# Direct Download (cataas.com)
# ══════════════════════════════════════════════════════════════════════════

class CataasImageSource(ImageSource):
    """Fetches bytes straight from an endpoint that serves a random image."""

    name = "cataas"

    def __init__(
        self,
        client: httpx.AsyncClient,
        tracer: trace.Tracer,
        max_bytes: int,
        url: str = "https://cataas.com/cat",
    ):
        super().__init__(client, tracer, max_bytes)
        self.url = url

    async def fetch_image(self) -> bytes:
        return await self.download_file(self.url)


# ══════════════════════════════════════════════════════════════════════════
# Metadata Then Download (thecatapi.com)
# ══════════════════════════════════════════════════════════════════════════

class TheCatApiImageSource(ImageSource):
    """
    Looks up an image URL via The Cat API search, then downloads it.

    The search answers with a JSON array like:
        [{"id": "abc", "url": "https://cdn2.thecatapi.com/images/abc.jpg",
          "width": 1200, "height": 800}]

    The LAST element's url is used. An empty array is EmptyResultError;
    anything else that is not an array of objects with a string url is
    MalformedResponseError.
    """

    name = "thecatapi"

    def __init__(
        self,
        client: httpx.AsyncClient,
        tracer: trace.Tracer,
        max_bytes: int,
        search_url: str = "https://api.thecatapi.com/v1/images/search",
        api_key: Optional[str] = None,
    ):
        super().__init__(client, tracer, max_bytes)
        self.search_url = search_url
        self.api_key = api_key

    async def fetch_image(self) -> bytes:
        image_url = await self.get_cat_image_url()
        return await self.download_file(image_url)

    async def get_cat_image_url(self) -> str:
        """Run the metadata search and return the chosen image URL."""
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["x-api-key"] = self.api_key

        with self.tracer.start_as_current_span("get_cat_image_url") as span:
            span.set_attribute("http.url", self.search_url)
            try:
                response = await self.client.get(self.search_url, headers=headers)
            except httpx.RequestError as e:
                raise _network_error(self.search_url, e) from e

            span.set_attribute("http.status_code", response.status_code)
            _raise_for_status(response)

            try:
                payload: Any = response.json()
            except ValueError as e:
                raise MalformedResponseError(
                    "The Cat API returned a body that is not JSON",
                    context={"url": self.search_url},
                ) from e

            image_url = _pick_image_url(payload, self.search_url)
            span.set_attribute("cat.image_url", image_url)
            return image_url


def _pick_image_url(payload: Any, search_url: str) -> str:
    if not isinstance(payload, list):
        raise MalformedResponseError(
            context={"url": search_url, "payload_type": type(payload).__name__},
        )
    if not payload:
        raise EmptyResultError(context={"url": search_url})

    candidate = payload[-1]
    url = candidate.get("url") if isinstance(candidate, dict) else None
    if not isinstance(url, str) or not url:
        raise MalformedResponseError(
            "The Cat API result has no usable url field",
            context={"url": search_url},
        )
    return url


def build_image_source(
    settings: Settings,
    client: httpx.AsyncClient,
    tracer: trace.Tracer,
) -> ImageSource:
    """Select the ImageSource implementation named by IMAGE_SOURCE."""
    if settings.image_source == "thecatapi":
        return TheCatApiImageSource(
            client,
            tracer,
            max_bytes=settings.max_image_bytes,
            search_url=settings.thecatapi_search_url,
            api_key=settings.thecatapi_api_key or None,
        )
    return CataasImageSource(
        client,
        tracer,
        max_bytes=settings.max_image_bytes,
        url=settings.cataas_url,
    )
