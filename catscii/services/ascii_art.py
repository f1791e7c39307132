"""
catscii — Image Decoding and ASCII-Art Conversion
===================================================

What:  Turns downloaded bytes into an HTML ASCII-art document.
How:   Two steps, each with its own span and its own failure type:

         decode_image(bytes)        Pillow           → DecodeError
         AsciiArtConverter.convert  ascii_magic      → ConversionError

       The converter is a black box with a fixed configuration: coloured
       HTML output at ASCII_COLUMNS columns. Its HTML fragment is wrapped in a
       fixed document so the browser renders it on a dark background.

Both steps are CPU-bound and synchronous; CatArtService runs them in a
worker thread.
"""

import io
import logging

from ascii_magic import AsciiArt
from opentelemetry import trace
from PIL import Image

from catscii.exceptions import ConversionError, DecodeError

logger = logging.getLogger(__name__)

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>catscii</title>
<style>
body {{ background-color: #000; margin: 0; }}
pre {{ font-family: monospace; font-size: 8px; line-height: 1; margin: 0; }}
</style>
</head>
<body>
<pre>{art}</pre>
</body>
</html>
"""


def decode_image(data: bytes, tracer: trace.Tracer) -> Image.Image:
    """
    Decode raw bytes into an RGB bitmap.

    Image.open() only reads the header, so load() is forced here: truncated
    or corrupt pixel data must fail in this step, not inside the converter.

    Raises:
        DecodeError: Unknown format, truncated data, or a decompression bomb.
    """
    with tracer.start_as_current_span("image.decode") as span:
        span.set_attribute("image.bytes", len(data))
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                image = img.convert("RGB")
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            raise DecodeError(
                context={"bytes": len(data), "error_type": type(e).__name__, "reason": str(e)},
            ) from e

        span.set_attribute("width", image.width)
        span.set_attribute("height", image.height)
        return image


class AsciiArtConverter:
    """
    Wrapper around ascii_magic with a fixed HTML configuration.

    Attributes:
        columns:  Characters per row; rows follow from the image aspect ratio.
    """

    def __init__(self, tracer: trace.Tracer, columns: int = 120):
        self.tracer = tracer
        self.columns = columns

    def convert(self, image: Image.Image) -> str:
        """
        Render a decoded image as a complete HTML document.

        Raises:
            ConversionError: Any failure inside ascii_magic.
        """
        with self.tracer.start_as_current_span("ascii.convert") as span:
            span.set_attribute("ascii.columns", self.columns)
            try:
                art = AsciiArt.from_pillow_image(image).to_html(columns=self.columns)
            except Exception as e:
                raise ConversionError(
                    context={
                        "width": image.width,
                        "height": image.height,
                        "error_type": type(e).__name__,
                        "reason": str(e),
                    },
                ) from e

            document = DOCUMENT_TEMPLATE.format(art=art)
            span.set_attribute("ascii.html_length", len(document))
            return document
