"""SplitPipeline -- orchestrator and public API for pagesplit.

Routes an uploaded file through the split pipeline:

1. Detect the :class:`FormatKind` via :class:`FormatDetector`.
2. Check resource limits via :class:`ResourceLimitChecker` before any
   conversion work (input size, page count, image pixels).
3. Convert with the converter registered for the detected kind.
4. Assemble an ordered :class:`SplitResult` via :class:`PageAssembler`.

Any failure aborts the invocation.  It is classified by
:class:`ErrorClassifier` and raised as :class:`PipelineException`; no
partial result is ever returned.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum

from pagesplit.assembler import PageAssembler
from pagesplit.classifier import ErrorClassifier
from pagesplit.config import SplitConfig
from pagesplit.converters.base import PageConverter
from pagesplit.converters.image import SinglePageImageConverter
from pagesplit.converters.office import OfficeDocumentConverter
from pagesplit.converters.pdf import MultiPageDocumentConverter
from pagesplit.detector import FormatDetector
from pagesplit.errors import (
    ErrorCode,
    PipelineException,
    UnsupportedFormatError,
)
from pagesplit.limits import ResourceLimitChecker
from pagesplit.models import FormatKind, RenderedPage, SplitResult, UploadedFile

logger = logging.getLogger("pagesplit")


class PipelineState(str, Enum):
    """States of one split invocation."""

    START = "start"
    DETECT = "detect"
    LIMIT_CHECK = "limit_check"
    CONVERT = "convert"
    ASSEMBLE = "assemble"
    DONE = "done"
    FAILED = "failed"


class SplitPipeline:
    """Orchestrator for the page split pipeline.

    Pipeline: detect -> limit check -> convert -> assemble

    Holds only immutable configuration and stateless collaborators, so one
    instance may serve concurrent callers.
    """

    def __init__(self, config: SplitConfig | None = None) -> None:
        self._config = config or SplitConfig()
        self._detector = FormatDetector(self._config)
        self._limits = ResourceLimitChecker(self._config)
        self._assembler = PageAssembler()
        self._classifier = ErrorClassifier()

        self._pdf_converter = MultiPageDocumentConverter(self._config)
        self._image_converter = SinglePageImageConverter()
        self._office_converter = OfficeDocumentConverter(
            self._config, pdf_converter=self._pdf_converter
        )
        self._converters: dict[FormatKind, PageConverter] = {
            FormatKind.PDF: self._pdf_converter,
            FormatKind.RASTER_IMAGE: self._image_converter,
            FormatKind.OFFICE_DOCUMENT: self._office_converter,
        }

    @property
    def config(self) -> SplitConfig:
        return self._config

    def can_handle(self, file_name: str, mime_type: str | None = None) -> bool:
        """Return True if the declared type or extension is supported.

        This is a cheap pre-check on metadata only; :meth:`split` still
        sniffs the content.
        """
        return self._detector.is_declared_supported(file_name, mime_type)

    def split_bytes(
        self,
        data: bytes,
        file_name: str,
        mime_type: str | None = None,
    ) -> SplitResult:
        """Convenience wrapper building the :class:`UploadedFile`."""
        return self.split(
            UploadedFile(data=data, file_name=file_name, mime_type=mime_type)
        )

    def split(self, upload: UploadedFile) -> SplitResult:
        """Split *upload* into page artifacts. Synchronous.

        Returns
        -------
        SplitResult
            The fully-assembled, ordered result.

        Raises
        ------
        PipelineException
            On any failure, carrying a :class:`PipelineError` with category,
            caller-safe message, and internal diagnostic.
        """
        overall_start = time.monotonic()
        filename = upload.file_name if self._config.log_file_names else "<redacted>"
        state = PipelineState.START

        try:
            # ==============================================================
            # Detect
            # ==============================================================
            state = self._transition(state, PipelineState.DETECT, filename)
            if not upload.data:
                raise UnsupportedFormatError(
                    "Uploaded payload is empty",
                    code=ErrorCode.E_FORMAT_EMPTY,
                )
            kind = self._detector.detect(upload.data, upload.mime_type, upload.file_name)
            if kind == FormatKind.UNSUPPORTED:
                raise UnsupportedFormatError(
                    f"No supported format matches declared type "
                    f"{upload.mime_type!r} or content signature"
                )

            # ==============================================================
            # Limit check (no conversion buffers allocated yet)
            # ==============================================================
            state = self._transition(state, PipelineState.LIMIT_CHECK, filename)
            self._limits.check_input_size(upload)
            if kind == FormatKind.PDF:
                self._limits.check_page_count(
                    self._pdf_converter.count_pages(upload.data)
                )
            elif kind == FormatKind.RASTER_IMAGE:
                self._limits.check_image_dimensions(upload.data)

            # ==============================================================
            # Convert
            # ==============================================================
            state = self._transition(state, PipelineState.CONVERT, filename)
            pages = self._convert(kind, upload.data)

            # ==============================================================
            # Assemble
            # ==============================================================
            state = self._transition(state, PipelineState.ASSEMBLE, filename)
            result = self._assembler.assemble(
                pages,
                original_file_name=upload.file_name,
                source_format=kind,
                processing_time_seconds=time.monotonic() - overall_start,
            )
            state = self._transition(state, PipelineState.DONE, filename)
        except Exception as exc:
            error = self._classifier.classify(exc)
            self._transition(state, PipelineState.FAILED, filename)
            log = logger.warning if error.is_client_error else logger.error
            log(
                "pagesplit | file=%s | state=%s | code=%s | detail=%s",
                filename,
                state.value,
                error.code.value,
                error.diagnostic,
            )
            raise PipelineException(error) from exc

        logger.info(
            "pagesplit | file=%s | kind=%s | pages=%d | time=%.1fs",
            filename,
            kind.value,
            result.total_pages,
            result.processing_time_seconds,
        )
        return result

    async def asplit(self, upload: UploadedFile) -> SplitResult:
        """Async wrapper via asyncio.to_thread().

        Offloads the synchronous ``split()`` call to a thread so callers
        using async frameworks can ``await`` without blocking the event
        loop.
        """
        return await asyncio.to_thread(self.split, upload)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _convert(self, kind: FormatKind, data: bytes) -> list[RenderedPage]:
        """Single dispatch point from format kind to converter."""
        if kind == FormatKind.OFFICE_DOCUMENT:
            # Page count is only knowable after normalization; check it
            # before any page is rendered.
            pdf_bytes = self._office_converter.normalize(data)
            self._limits.check_page_count(self._pdf_converter.count_pages(pdf_bytes))
            return self._pdf_converter.convert(pdf_bytes)
        return self._converters[kind].convert(data)

    @staticmethod
    def _transition(
        current: PipelineState, target: PipelineState, filename: str
    ) -> PipelineState:
        logger.debug(
            "pagesplit | file=%s | %s -> %s", filename, current.value, target.value
        )
        return target
