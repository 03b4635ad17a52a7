"""Pre-conversion resource limit checks.

Rejects oversized inputs before any conversion buffer is allocated: input
byte size, derivable page count, and raster pixel count.  Each check raises
:class:`~pagesplit.errors.ResourceLimitError` on the first breach.
"""

from __future__ import annotations

import io
import logging
import warnings

from PIL import Image

from pagesplit.config import SplitConfig
from pagesplit.errors import ErrorCode, ResourceLimitError
from pagesplit.models import UploadedFile

logger = logging.getLogger("pagesplit")


class ResourceLimitChecker:
    """Enforce the configured input caps."""

    def __init__(self, config: SplitConfig) -> None:
        self.config = config

    def check_input_size(self, upload: UploadedFile) -> None:
        """Reject uploads whose declared or measured size exceeds the cap."""
        size = max(upload.size_bytes, len(upload.data))
        limit = self.config.max_input_bytes
        if size > limit:
            raise ResourceLimitError(
                ErrorCode.E_LIMIT_INPUT_TOO_LARGE,
                f"Input size {size} bytes exceeds limit of {limit} bytes",
                limit=limit,
                actual=size,
            )

    def check_page_count(self, page_count: int) -> None:
        """Reject documents with more pages than allowed."""
        limit = self.config.max_pages
        if page_count > limit:
            raise ResourceLimitError(
                ErrorCode.E_LIMIT_TOO_MANY_PAGES,
                f"Page count {page_count} exceeds limit of {limit}",
                limit=limit,
                actual=page_count,
            )

    def check_image_dimensions(self, data: bytes) -> None:
        """Reject raster images whose pixel count exceeds the cap.

        Only the image header is read.  Headers Pillow cannot parse are left
        for the converter to report as a parse failure.  The configured cap
        never exceeds Pillow's own ceiling, so an image Pillow refuses to
        open is always over the cap too.
        """
        limit = self.config.max_image_pixels
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", Image.DecompressionBombWarning)
                with Image.open(io.BytesIO(data)) as img:
                    width, height = img.size
        except Image.DecompressionBombError as exc:
            raise ResourceLimitError(
                ErrorCode.E_LIMIT_IMAGE_TOO_LARGE,
                f"Image exceeds limit of {limit} pixels: {exc}",
                limit=limit,
                actual=-1,
            ) from exc
        except Exception as exc:
            logger.debug("pagesplit | limits | unreadable image header: %s", exc)
            return

        pixels = width * height
        if pixels > limit:
            raise ResourceLimitError(
                ErrorCode.E_LIMIT_IMAGE_TOO_LARGE,
                f"Image dimensions {width}x{height} ({pixels} pixels) "
                f"exceed limit of {limit} pixels",
                limit=limit,
                actual=pixels,
            )
