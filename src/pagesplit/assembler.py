"""Assemble converter output into a :class:`~pagesplit.models.SplitResult`.

This is the only place a ``SplitResult`` is built, and so the only place
the ``total_pages == len(pages)`` and contiguous page-number invariants are
established.
"""

from __future__ import annotations

import ntpath
import posixpath
from collections.abc import Sequence

from pagesplit.models import (
    FormatKind,
    PageArtifact,
    PageStatus,
    RenderedPage,
    SplitResult,
)

_EXTENSION_BY_MIME: dict[str, str] = {
    "image/jpeg": "jpeg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
}


def base_name(file_name: str) -> str:
    """Strip any directory part and the final extension from *file_name*."""
    name = ntpath.basename(posixpath.basename(file_name))
    stem, dot, _ext = name.rpartition(".")
    if dot and stem:
        return stem
    return name or "document"


def extension_for_mime(mime_type: str) -> str:
    """Return the file extension used for pages of *mime_type*."""
    ext = _EXTENSION_BY_MIME.get(mime_type.lower())
    if ext is None:
        _major, _slash, subtype = mime_type.partition("/")
        ext = subtype or "bin"
    return ext


def page_file_name(original_file_name: str, page_number: int, mime_type: str) -> str:
    """``{baseName}_page_{pageNumber}.{ext}``"""
    return (
        f"{base_name(original_file_name)}_page_{page_number}."
        f"{extension_for_mime(mime_type)}"
    )


class PageAssembler:
    """Turn an ordered list of rendered pages into a ``SplitResult``."""

    def assemble(
        self,
        pages: Sequence[RenderedPage],
        original_file_name: str,
        source_format: FormatKind,
        processing_time_seconds: float = 0.0,
    ) -> SplitResult:
        """Build the final result.

        Raises
        ------
        ValueError
            If the converter output has a gap or duplicate page index, or is
            empty.  This indicates a converter bug.
        """
        ordered = sorted(pages, key=lambda p: p.page_index)
        if not ordered:
            raise ValueError("Converter produced no pages")

        for expected, page in enumerate(ordered, start=1):
            if page.page_index != expected:
                raise ValueError(
                    f"Converter output is not contiguous: expected page "
                    f"{expected}, got {page.page_index}"
                )

        artifacts = tuple(
            PageArtifact(
                page_number=page.page_index,
                file_name=page_file_name(
                    original_file_name, page.page_index, page.mime_type
                ),
                mime_type=page.mime_type,
                image_bytes=page.image_bytes,
                status=PageStatus.PENDING,
                error=None,
                width=page.width,
                height=page.height,
            )
            for page in ordered
        )

        return SplitResult(
            original_file_name=original_file_name,
            total_pages=len(artifacts),
            pages=artifacts,
            source_format=source_format,
            processing_time_seconds=processing_time_seconds,
        )
