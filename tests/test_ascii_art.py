"""
catscii — Decode and ASCII Conversion Tests
=============================================

What:  Tests for decode_image() and AsciiArtConverter.
How:   Real Pillow decoding and real ascii_magic conversion on tiny images;
       converter failures are injected by patching ascii_magic.
"""

from unittest.mock import patch

import pytest
from PIL import Image

from catscii.exceptions import ConversionError, DecodeError
from catscii.services.ascii_art import AsciiArtConverter, decode_image


class TestDecodeImage:
    """Tests for the Pillow decode step."""

    def test_decodes_jpeg_dimensions(self, jpeg_bytes, tracer, span_exporter):
        """Width and height land on the image and the decode span."""
        image = decode_image(jpeg_bytes, tracer)

        assert image.size == (64, 48)
        assert image.mode == "RGB"

        span = span_exporter.get_finished_spans()[0]
        assert span.name == "image.decode"
        assert span.attributes["width"] == 64
        assert span.attributes["height"] == 48

    def test_decodes_png(self, png_bytes, tracer):
        """PNG input is decoded to RGB."""
        assert decode_image(png_bytes, tracer).size == (40, 40)

    def test_garbage_bytes_raise_decode_error(self, tracer):
        """Bytes of no known format are a DecodeError."""
        with pytest.raises(DecodeError) as exc_info:
            decode_image(b"definitely not an image", tracer)
        assert exc_info.value.context["bytes"] == len(b"definitely not an image")

    def test_empty_bytes_raise_decode_error(self, tracer):
        """An empty body is a DecodeError, not a crash."""
        with pytest.raises(DecodeError):
            decode_image(b"", tracer)

    def test_truncated_image_raises_decode_error(self, jpeg_bytes, tracer):
        """Header parses but pixel data is cut short: load() must fail here."""
        with pytest.raises(DecodeError):
            decode_image(jpeg_bytes[: len(jpeg_bytes) // 3], tracer)

    def test_decode_error_marks_span(self, tracer, span_exporter):
        """A decode failure leaves the span in ERROR."""
        with pytest.raises(DecodeError):
            decode_image(b"junk", tracer)

        span = span_exporter.get_finished_spans()[0]
        assert not span.status.is_ok


class TestAsciiArtConverter:
    """Tests for the ascii_magic HTML conversion step."""

    def test_produces_html_document(self, png_bytes, tracer):
        """The fragment is wrapped in the fixed HTML document."""
        converter = AsciiArtConverter(tracer, columns=40)
        document = converter.convert(decode_image(png_bytes, tracer))

        assert document.startswith("<!DOCTYPE html>")
        assert "<pre>" in document
        assert document.rstrip().endswith("</html>")
        # The art itself lives between the <pre> tags.
        art = document.split("<pre>", 1)[1].split("</pre>", 1)[0]
        assert art.strip()

    def test_taller_image_yields_more_output(self, png_bytes, tall_png_bytes, tracer):
        """Rows follow the aspect ratio: same columns, taller image, longer art."""
        converter = AsciiArtConverter(tracer, columns=40)
        square = converter.convert(decode_image(png_bytes, tracer))
        tall = converter.convert(decode_image(tall_png_bytes, tracer))

        assert len(tall) > len(square)

    def test_library_failure_raises_conversion_error(self, png_bytes, tracer, span_exporter):
        """Anything ascii_magic raises becomes a ConversionError."""
        image = decode_image(png_bytes, tracer)
        converter = AsciiArtConverter(tracer)

        with patch(
            "catscii.services.ascii_art.AsciiArt.from_pillow_image",
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(ConversionError) as exc_info:
                converter.convert(image)

        assert exc_info.value.context["error_type"] == "RuntimeError"
        assert exc_info.value.context["width"] == 40
        convert_span = [s for s in span_exporter.get_finished_spans() if s.name == "ascii.convert"][0]
        assert not convert_span.status.is_ok

    def test_accepts_any_pillow_image(self, tracer):
        """A bitmap built in memory converts without a decode step."""
        converter = AsciiArtConverter(tracer, columns=20)
        document = converter.convert(Image.new("RGB", (30, 10), (255, 255, 255)))
        assert "<pre>" in document
