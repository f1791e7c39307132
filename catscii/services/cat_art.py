"""
catscii — Cat ASCII-Art Pipeline
==================================

What:  Orchestrates fetch → decode → convert for one request.
Who:   Called by the GET / route handler.

Flow:
    1. image_source.fetch_image()       (async, outbound HTTP)
    2. decode_image(bytes)              (worker thread)
    3. converter.convert(image)         (worker thread)

Each step depends on the previous one's output; a failure at any step
short-circuits the rest. Nothing is cached between requests.
"""

import asyncio
import logging

from opentelemetry import trace

from catscii.config import Settings
from catscii.exceptions import CatsciiError
from catscii.services.ascii_art import AsciiArtConverter, decode_image
from catscii.services.image_source import ImageSource

logger = logging.getLogger(__name__)


class CatArtService:
    """Produces one ASCII-art HTML document from a freshly fetched cat image."""

    def __init__(
        self,
        image_source: ImageSource,
        converter: AsciiArtConverter,
        tracer: trace.Tracer,
    ):
        self.image_source = image_source
        self.converter = converter
        self.tracer = tracer

    async def get_cat_ascii_art(self) -> str:
        """
        Run the full pipeline.

        Returns:
            The AsciiArtDocument (HTML string).

        Raises:
            CatsciiError: Any pipeline failure. Unexpected exceptions from a
            collaborator are wrapped so the route boundary only ever sees
            domain errors.
        """
        with self.tracer.start_as_current_span("get_cat_ascii_art") as span:
            span.set_attribute("cat.image_source", self.image_source.name)
            try:
                image_bytes = await self.image_source.fetch_image()
                image = await asyncio.to_thread(decode_image, image_bytes, self.tracer)
                art = await asyncio.to_thread(self.converter.convert, image)
            except CatsciiError:
                raise
            except Exception as e:
                raise CatsciiError(
                    message=f"Unexpected failure while building ASCII art: {e}",
                    context={"error_type": type(e).__name__},
                ) from e

        logger.info(
            "Built ASCII art for %dx%d image (%d bytes in, %d chars out)",
            image.width,
            image.height,
            len(image_bytes),
            len(art),
        )
        return art


def build_cat_art_service(
    settings: Settings,
    image_source: ImageSource,
    tracer: trace.Tracer,
) -> CatArtService:
    return CatArtService(
        image_source=image_source,
        converter=AsciiArtConverter(tracer, columns=settings.ascii_columns),
        tracer=tracer,
    )
