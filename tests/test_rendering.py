"""Tests for pagesplit.converters._rendering -- PageRenderer."""

from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest
from PIL import Image

from pagesplit.config import SplitConfig
from pagesplit.converters._rendering import JPEG_MIME, PageRenderer
from pagesplit.errors import ConversionError, ConversionStage, ErrorCode


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_mock_pixmap(width: int = 200, height: int = 200) -> MagicMock:
    """Create a mock fitz Pixmap with correct attributes."""
    pix = MagicMock()
    pix.width = width
    pix.height = height
    # 3 bytes per pixel (RGB)
    pix.samples = bytes([200]) * (width * height * 3)
    return pix


def _make_mock_page(pixmap: MagicMock | None = None) -> MagicMock:
    """Create a mock fitz.Page that returns the given pixmap."""
    if pixmap is None:
        pixmap = _make_mock_pixmap()
    page = MagicMock()
    page.get_pixmap.return_value = pixmap
    return page


# ---------------------------------------------------------------------------
# TestRenderPage
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestRenderPage:
    def test_render_page_default_dpi(self):
        """Renders at the default 200 DPI."""
        renderer = PageRenderer(SplitConfig())
        page = _make_mock_page(_make_mock_pixmap(width=1700, height=2200))

        result = renderer.render_page(page)

        page.get_pixmap.assert_called_once_with(dpi=200)
        assert isinstance(result, Image.Image)
        assert result.size == (1700, 2200)
        assert result.mode == "RGB"

    def test_render_page_custom_dpi(self):
        renderer = PageRenderer(SplitConfig(render_dpi=150))
        page = _make_mock_page()

        renderer.render_page(page)

        page.get_pixmap.assert_called_once_with(dpi=150)


@pytest.mark.unit
class TestFit:
    def test_shrinks_to_box_preserving_aspect(self):
        renderer = PageRenderer(SplitConfig())
        fitted = renderer.fit(Image.new("RGB", (1700, 2200)))
        assert fitted.width == 1240
        assert fitted.height <= 1754
        assert abs(fitted.width / fitted.height - 1700 / 2200) < 0.01

    def test_never_enlarges(self):
        renderer = PageRenderer(SplitConfig())
        small = Image.new("RGB", (300, 400))
        assert renderer.fit(small) is small

    def test_landscape_bound_by_width(self):
        renderer = PageRenderer(SplitConfig())
        fitted = renderer.fit(Image.new("RGB", (2200, 1700)))
        assert fitted.width == 1240
        assert fitted.height < 1754


@pytest.mark.unit
class TestEncodeJpeg:
    def test_progressive_jpeg(self):
        renderer = PageRenderer(SplitConfig())
        data = renderer.encode_jpeg(Image.new("RGB", (64, 64), "white"))
        assert data.startswith(b"\xff\xd8\xff")
        with Image.open(io.BytesIO(data)) as img:
            assert img.format == "JPEG"
            assert img.info.get("progressive") or img.info.get("progression")

    def test_converts_non_rgb(self):
        renderer = PageRenderer(SplitConfig())
        data = renderer.encode_jpeg(Image.new("RGBA", (32, 32)))
        with Image.open(io.BytesIO(data)) as img:
            assert img.mode == "RGB"


@pytest.mark.unit
class TestRenderToPage:
    def test_returns_rendered_page(self):
        renderer = PageRenderer(SplitConfig())
        page = _make_mock_page(_make_mock_pixmap(width=1700, height=2200))

        rendered = renderer.render_to_page(page, 3)

        assert rendered.page_index == 3
        assert rendered.mime_type == JPEG_MIME
        assert rendered.image_bytes.startswith(b"\xff\xd8\xff")
        assert rendered.width == 1240
        assert rendered.height <= 1754

    def test_render_failure_tagged_render(self):
        renderer = PageRenderer(SplitConfig())
        page = MagicMock()
        page.get_pixmap.side_effect = RuntimeError("cannot rasterize")

        with pytest.raises(ConversionError) as exc_info:
            renderer.render_to_page(page, 2)

        assert exc_info.value.stage == ConversionStage.RENDER
        assert exc_info.value.code == ErrorCode.E_CONVERT_RENDER
        assert exc_info.value.page_number == 2
        assert "cannot rasterize" in exc_info.value.detail

    def test_encode_failure_tagged_encode(self, monkeypatch):
        renderer = PageRenderer(SplitConfig())

        def _boom(image):
            raise OSError("encoder missing")

        monkeypatch.setattr(renderer, "encode_jpeg", _boom)

        with pytest.raises(ConversionError) as exc_info:
            renderer.render_to_page(_make_mock_page(), 1)

        assert exc_info.value.stage == ConversionStage.ENCODE
        assert exc_info.value.code == ErrorCode.E_CONVERT_ENCODE
