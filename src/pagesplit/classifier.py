"""Map internal failures to the caller-facing error taxonomy.

Every failure the pipeline can hit becomes exactly one
:class:`~pagesplit.errors.PipelineError`.  Messages come from fixed
tables so raw exception text never reaches the caller as the primary
message; it is kept in ``diagnostic`` for logging.
"""

from __future__ import annotations

from concurrent.futures import TimeoutError as FuturesTimeoutError

from pagesplit.errors import (
    ConversionError,
    ConversionStage,
    ErrorCategory,
    ErrorCode,
    PipelineError,
    ResourceLimitError,
    SplitException,
    UnsupportedFormatError,
    category_for_code,
)

_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.E_FORMAT_UNSUPPORTED: (
        "Unsupported file type. Please upload a PDF, image, or supported document."
    ),
    ErrorCode.E_FORMAT_EMPTY: "The uploaded file is empty.",
    ErrorCode.E_LIMIT_INPUT_TOO_LARGE: "The uploaded file is too large.",
    ErrorCode.E_LIMIT_TOO_MANY_PAGES: "The document has too many pages.",
    ErrorCode.E_LIMIT_IMAGE_TOO_LARGE: "The image dimensions are too large.",
    ErrorCode.E_CONVERT_PARSE: "The file could not be read. It may be damaged.",
    ErrorCode.E_CONVERT_PASSWORD: "The document is password protected.",
    ErrorCode.E_CONVERT_EMPTY: "The document contains no pages.",
    ErrorCode.E_CONVERT_RENDER: "Failed to convert document pages to images.",
    ErrorCode.E_CONVERT_ENCODE: "Failed to encode page images.",
    ErrorCode.E_CONVERT_NORMALIZE: "Failed to convert the document for page rendering.",
    ErrorCode.E_CONVERT_TIMEOUT: "Document conversion took too long.",
    ErrorCode.E_CONVERT_INTERNAL: "Failed to split the document.",
}


class ErrorClassifier:
    """Translate exceptions into :class:`PipelineError` instances."""

    def classify(self, exc: BaseException) -> PipelineError:
        """Return the single ``PipelineError`` describing *exc*."""
        if isinstance(exc, ConversionError):
            return self._build(exc.code, stage=exc.stage, diagnostic=exc.detail)

        if isinstance(exc, ResourceLimitError):
            message = _MESSAGES[exc.code]
            if exc.limit > 0:
                message = f"{message} (limit: {exc.limit})"
            return PipelineError(
                category=ErrorCategory.RESOURCE_LIMIT,
                code=exc.code,
                message=message,
                diagnostic=exc.message,
            )

        if isinstance(exc, (UnsupportedFormatError, SplitException)):
            return self._build(exc.code, diagnostic=exc.message)

        if isinstance(exc, (TimeoutError, FuturesTimeoutError)):
            return self._build(
                ErrorCode.E_CONVERT_TIMEOUT,
                stage=ConversionStage.RENDER,
                diagnostic=str(exc) or type(exc).__name__,
            )

        return self._build(
            ErrorCode.E_CONVERT_INTERNAL,
            diagnostic=f"{type(exc).__name__}: {exc}",
        )

    @staticmethod
    def _build(
        code: ErrorCode,
        stage: ConversionStage | None = None,
        diagnostic: str | None = None,
    ) -> PipelineError:
        return PipelineError(
            category=category_for_code(code),
            code=code,
            message=_MESSAGES[code],
            stage=stage,
            diagnostic=diagnostic or None,
        )
