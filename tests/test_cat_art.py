"""
catscii — Pipeline Service Tests
==================================

What:  Tests for CatArtService ordering and error propagation.
How:   The image source and converter are mocked; decoding is real.

What we test:
    ✅ fetch → decode → convert, in that order, once each
    ✅ A failing step short-circuits the remaining steps
    ✅ Unexpected collaborator exceptions are wrapped as CatsciiError
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from catscii.exceptions import CatsciiError, DecodeError, EmptyResultError
from catscii.services.cat_art import CatArtService


def _service(tracer, fetch, convert=None):
    image_source = MagicMock()
    image_source.name = "mock"
    image_source.fetch_image = fetch
    converter = MagicMock()
    converter.convert = convert or MagicMock(return_value="<html>art</html>")
    return CatArtService(image_source=image_source, converter=converter, tracer=tracer), converter


class TestCatArtService:

    @pytest.mark.asyncio
    async def test_pipeline_success(self, tracer, png_bytes, span_exporter):
        """Fetch, decode and convert run in order under one span."""
        fetch = AsyncMock(return_value=png_bytes)
        service, converter = _service(tracer, fetch)

        assert await service.get_cat_ascii_art() == "<html>art</html>"

        fetch.assert_awaited_once()
        converter.convert.assert_called_once()
        (image,), _ = converter.convert.call_args
        assert image.size == (40, 40)

        names = [s.name for s in span_exporter.get_finished_spans()]
        assert names == ["image.decode", "get_cat_ascii_art"]

    @pytest.mark.asyncio
    async def test_fetch_failure_short_circuits(self, tracer):
        """A fetch error stops the pipeline before decoding."""
        fetch = AsyncMock(side_effect=EmptyResultError())
        service, converter = _service(tracer, fetch)

        with pytest.raises(EmptyResultError):
            await service.get_cat_ascii_art()

        converter.convert.assert_not_called()

    @pytest.mark.asyncio
    async def test_decode_failure_skips_conversion(self, tracer):
        """A decode error means the converter is never called."""
        service, converter = _service(tracer, AsyncMock(return_value=b"garbage"))

        with pytest.raises(DecodeError):
            await service.get_cat_ascii_art()

        converter.convert.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, tracer, png_bytes, span_exporter):
        """Non-domain errors surface as CatsciiError."""
        service, _ = _service(
            tracer,
            AsyncMock(return_value=png_bytes),
            convert=MagicMock(side_effect=KeyError("palette")),
        )

        with pytest.raises(CatsciiError) as exc_info:
            await service.get_cat_ascii_art()

        assert exc_info.value.context["error_type"] == "KeyError"
        assert isinstance(exc_info.value.__cause__, KeyError)
        pipeline_span = next(s for s in span_exporter.get_finished_spans() if s.name == "get_cat_ascii_art")
        assert pipeline_span.attributes["cat.image_source"] == "mock"
