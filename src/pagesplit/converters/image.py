"""Single-page converter for raster image input.

The whole image is exactly one page.  Formats a browser can display
directly (JPEG, PNG, GIF, WEBP) pass through byte-for-byte; BMP and TIFF
are re-encoded to PNG.  Multi-frame inputs contribute their first frame.
"""

from __future__ import annotations

import io
import logging
import warnings

from PIL import Image

from pagesplit.config import pillow_pixel_ceiling
from pagesplit.detector import sniff_image_type
from pagesplit.errors import (
    ConversionError,
    ConversionStage,
    ErrorCode,
    ResourceLimitError,
)
from pagesplit.models import FormatKind, ImageType, RenderedPage

logger = logging.getLogger("pagesplit")

_PASSTHROUGH_MIME: dict[ImageType, str] = {
    ImageType.JPEG: "image/jpeg",
    ImageType.PNG: "image/png",
    ImageType.GIF: "image/gif",
    ImageType.WEBP: "image/webp",
}

_PNG_SAFE_MODES = frozenset({"1", "L", "LA", "P", "RGB", "RGBA"})


class SinglePageImageConverter:
    """Treat a raster image as a one-page document."""

    format_kind = FormatKind.RASTER_IMAGE

    def convert(self, data: bytes) -> list[RenderedPage]:
        """Return *data* as a single rendered page.

        Raises
        ------
        ConversionError
            Stage ``parse`` if Pillow cannot decode the image, ``encode`` if
            re-encoding to PNG fails.
        ResourceLimitError
            If the image is past the point where Pillow refuses to open it.
        """
        image_type = sniff_image_type(data[:32])

        try:
            with warnings.catch_warnings():
                # Pixel caps are enforced by ResourceLimitChecker beforehand
                warnings.simplefilter("ignore", Image.DecompressionBombWarning)
                img = Image.open(io.BytesIO(data))
            with img:
                img.load()
                width, height = img.size
                if image_type in _PASSTHROUGH_MIME:
                    return [
                        RenderedPage(
                            page_index=1,
                            mime_type=_PASSTHROUGH_MIME[image_type],
                            image_bytes=data,
                            width=width,
                            height=height,
                        )
                    ]
                frame = img.copy()
        except Image.DecompressionBombError as exc:
            raise ResourceLimitError(
                ErrorCode.E_LIMIT_IMAGE_TOO_LARGE,
                f"Pillow refused to open image: {exc}",
                limit=pillow_pixel_ceiling() or -1,
                actual=-1,
            ) from exc
        except Exception as exc:
            raise ConversionError(
                ConversionStage.PARSE,
                f"Pillow cannot decode image: {exc}",
            ) from exc

        logger.debug(
            "pagesplit | image | re-encoding %s to png | %dx%d",
            image_type.value if image_type else "unknown",
            width,
            height,
        )
        return [
            RenderedPage(
                page_index=1,
                mime_type="image/png",
                image_bytes=self._encode_png(frame),
                width=width,
                height=height,
            )
        ]

    @staticmethod
    def _encode_png(image: Image.Image) -> bytes:
        try:
            if image.mode not in _PNG_SAFE_MODES:
                image = image.convert("RGB")
            buf = io.BytesIO()
            image.save(buf, format="PNG")
            return buf.getvalue()
        except Exception as exc:
            raise ConversionError(
                ConversionStage.ENCODE,
                f"Failed to re-encode image as PNG: {exc}",
            ) from exc
