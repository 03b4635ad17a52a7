"""Converter protocol shared by every format-specific converter."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pagesplit.models import FormatKind, RenderedPage


@runtime_checkable
class PageConverter(Protocol):
    """Produce an ordered sequence of raw page images from raw input bytes.

    Implementations return pages 1-based, contiguous, and in the source
    document's natural order.  Failures are raised as
    :class:`~pagesplit.errors.ConversionError` carrying a stage tag.
    """

    format_kind: FormatKind

    def convert(self, data: bytes) -> list[RenderedPage]:
        """Convert *data* into rendered pages."""
        ...
