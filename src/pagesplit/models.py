"""Pydantic models and enumerations for the pagesplit package.

Contains the input type (``UploadedFile``), the converter output
(``RenderedPage``), and the result types (``PageArtifact``,
``SplitResult``).  All models are frozen: once a stage has produced one,
nothing downstream mutates it.
"""

from __future__ import annotations

import base64
import pathlib
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class FormatKind(str, Enum):
    """Closed set of input formats the pipeline understands."""

    PDF = "pdf"
    RASTER_IMAGE = "raster_image"
    OFFICE_DOCUMENT = "office_document"
    UNSUPPORTED = "unsupported"


class ImageType(str, Enum):
    """Sniffed raster sub-format."""

    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    WEBP = "webp"
    BMP = "bmp"
    TIFF = "tiff"


class PageStatus(str, Enum):
    """Processing status of a page artifact.

    ``PENDING`` means the split succeeded and downstream extraction has not
    run yet.  ``FAILED`` is reserved for downstream stages; the splitter
    never emits it.
    """

    PENDING = "pending"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class UploadedFile(BaseModel):
    """Raw upload as received from the calling layer.

    ``mime_type`` is the declared type and is not trusted.
    """

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    file_name: str
    mime_type: str | None = None
    size_bytes: int = -1

    @model_validator(mode="before")
    @classmethod
    def _derive_size(cls, values: Any) -> Any:
        if isinstance(values, dict) and (
            values.get("size_bytes") is None or values["size_bytes"] < 0
        ):
            data = values.get("data", b"")
            values = {**values, "size_bytes": len(data)}
        return values

    @classmethod
    def from_path(cls, path: str, mime_type: str | None = None) -> UploadedFile:
        """Read an upload from disk."""
        file_path = pathlib.Path(path)
        return cls(
            data=file_path.read_bytes(),
            file_name=file_path.name,
            mime_type=mime_type,
        )


# ---------------------------------------------------------------------------
# Converter output
# ---------------------------------------------------------------------------


class RenderedPage(BaseModel):
    """One raster page as produced by a converter."""

    model_config = ConfigDict(frozen=True)

    page_index: int = Field(ge=1)
    mime_type: str
    image_bytes: bytes = Field(repr=False)
    width: int | None = None
    height: int | None = None


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class PageArtifact(BaseModel):
    """One rendered page plus its identifying metadata and status."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    file_name: str
    mime_type: str
    image_bytes: bytes = Field(repr=False)
    status: PageStatus = PageStatus.PENDING
    error: str | None = None
    width: int | None = None
    height: int | None = None

    @model_validator(mode="after")
    def _validate_error_matches_status(self) -> PageArtifact:
        if self.status == PageStatus.FAILED and not self.error:
            raise ValueError("A failed page artifact must carry an error")
        if self.status != PageStatus.FAILED and self.error is not None:
            raise ValueError("Only failed page artifacts may carry an error")
        return self

    @property
    def size_bytes(self) -> int:
        return len(self.image_bytes)

    def to_payload(self, include_data_url: bool = True) -> dict[str, Any]:
        encoded = base64.b64encode(self.image_bytes).decode("ascii")
        payload: dict[str, Any] = {
            "pageNumber": self.page_number,
            "fileName": self.file_name,
            "mimeType": self.mime_type,
        }
        if include_data_url:
            payload["imageDataUrl"] = f"data:{self.mime_type};base64,{encoded}"
        else:
            payload["imageBase64"] = encoded
        payload.update(
            {
                "bufferSize": self.size_bytes,
                "status": self.status.value,
                "extractedData": None,
                "error": self.error,
            }
        )
        return payload


class SplitResult(BaseModel):
    """The complete, ordered output of one split invocation.

    Invariants: ``total_pages == len(pages)`` and
    ``pages[i].page_number == i + 1``.
    """

    model_config = ConfigDict(frozen=True)

    original_file_name: str
    total_pages: int
    pages: tuple[PageArtifact, ...]
    source_format: FormatKind
    processing_time_seconds: float = 0.0

    @model_validator(mode="after")
    def _validate_page_sequence(self) -> SplitResult:
        if self.total_pages != len(self.pages):
            raise ValueError(
                f"total_pages={self.total_pages} does not match "
                f"{len(self.pages)} page artifacts"
            )
        for i, page in enumerate(self.pages):
            if page.page_number != i + 1:
                raise ValueError(
                    f"Page at position {i} has page_number={page.page_number}, "
                    f"expected {i + 1}"
                )
        return self

    def to_payload(self, include_data_url: bool = True) -> dict[str, Any]:
        """Return the JSON-ready body the upload route responds with."""
        return {
            "success": True,
            "originalFileName": self.original_file_name,
            "totalPages": self.total_pages,
            "pages": [p.to_payload(include_data_url) for p in self.pages],
        }

    def to_manifest(self) -> dict[str, Any]:
        """Return the result metadata without any image data."""
        return {
            "originalFileName": self.original_file_name,
            "sourceFormat": self.source_format.value,
            "totalPages": self.total_pages,
            "processingTimeSeconds": round(self.processing_time_seconds, 3),
            "pages": [
                {
                    "pageNumber": p.page_number,
                    "fileName": p.file_name,
                    "mimeType": p.mime_type,
                    "bufferSize": p.size_bytes,
                    "width": p.width,
                    "height": p.height,
                    "status": p.status.value,
                }
                for p in self.pages
            ],
        }
