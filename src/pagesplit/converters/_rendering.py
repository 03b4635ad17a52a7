"""Page rendering and raster encoding for PDF pages.

Converts PyMuPDF ``fitz.Page`` objects to PIL Images at the configured DPI,
shrinks them to fit the configured page box, and encodes them as
progressive JPEG.

Private module -- not exported from the converters package.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

from PIL import Image

from pagesplit.config import SplitConfig
from pagesplit.errors import ConversionError, ConversionStage
from pagesplit.models import RenderedPage

if TYPE_CHECKING:
    import fitz

logger = logging.getLogger("pagesplit.converters.rendering")

JPEG_MIME = "image/jpeg"

_LARGE_DIMENSION_THRESHOLD = 10000


class PageRenderer:
    """Render PDF pages to JPEG page images.

    Parameters
    ----------
    config:
        Pipeline configuration providing ``render_dpi``, the page box
        (``max_page_width`` x ``max_page_height``) and ``jpeg_quality``.
    """

    def __init__(self, config: SplitConfig) -> None:
        self._dpi = config.render_dpi
        self._max_size = (config.max_page_width, config.max_page_height)
        self._quality = config.jpeg_quality

    def render_page(self, page: fitz.Page) -> Image.Image:
        """Render a PDF page to an RGB PIL Image at the configured DPI."""
        pix = page.get_pixmap(dpi=self._dpi)

        if pix.width > _LARGE_DIMENSION_THRESHOLD or pix.height > _LARGE_DIMENSION_THRESHOLD:
            logger.warning(
                "Large page dimensions: %dx%d at %d DPI",
                pix.width,
                pix.height,
                self._dpi,
            )

        logger.debug(
            "Rendered page to %dx%d image at %d DPI",
            pix.width,
            pix.height,
            self._dpi,
        )

        return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)

    def fit(self, image: Image.Image) -> Image.Image:
        """Shrink *image* to fit the page box, preserving aspect ratio.

        Images already inside the box are returned unchanged (never enlarged).
        """
        max_w, max_h = self._max_size
        if image.width <= max_w and image.height <= max_h:
            return image
        fitted = image.copy()
        fitted.thumbnail(self._max_size, Image.Resampling.LANCZOS)
        return fitted

    def encode_jpeg(self, image: Image.Image) -> bytes:
        """Encode *image* as a progressive JPEG."""
        if image.mode != "RGB":
            image = image.convert("RGB")
        buf = io.BytesIO()
        image.save(buf, format="JPEG", quality=self._quality, progressive=True)
        return buf.getvalue()

    def render_to_page(self, page: fitz.Page, page_number: int) -> RenderedPage:
        """Render, fit and encode one page.

        Raises
        ------
        ConversionError
            With stage ``render`` when rasterisation fails, or ``encode``
            when the JPEG cannot be produced.
        """
        try:
            image = self.fit(self.render_page(page))
        except Exception as exc:
            raise ConversionError(
                ConversionStage.RENDER,
                f"Failed to render page {page_number}: {exc}",
                page_number=page_number,
            ) from exc

        try:
            image_bytes = self.encode_jpeg(image)
        except Exception as exc:
            raise ConversionError(
                ConversionStage.ENCODE,
                f"Failed to encode page {page_number}: {exc}",
                page_number=page_number,
            ) from exc

        return RenderedPage(
            page_index=page_number,
            mime_type=JPEG_MIME,
            image_bytes=image_bytes,
            width=image.width,
            height=image.height,
        )
