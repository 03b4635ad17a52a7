"""Error codes, structured error model, and raisable exceptions for pagesplit.

``ErrorCode`` contains every failure code the pipeline can produce.  Codes
roll up into the three caller-facing ``ErrorCategory`` values.
``PipelineError`` is the Pydantic model handed to callers; it is raised
wrapped in ``PipelineException``.  The internal exceptions
(``UnsupportedFormatError``, ``ResourceLimitError``, ``ConversionError``)
are raised by the individual stages and mapped to a ``PipelineError`` by
:class:`~pagesplit.classifier.ErrorClassifier`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


class ErrorCategory(str, Enum):
    """Caller-facing error taxonomy."""

    UNSUPPORTED_FORMAT = "UnsupportedFormat"
    CONVERSION_FAILURE = "ConversionFailure"
    RESOURCE_LIMIT = "ResourceLimit"


class ConversionStage(str, Enum):
    """Sub-step of a conversion at which a failure occurred."""

    PARSE = "parse"
    RENDER = "render"
    ENCODE = "encode"
    NORMALIZE = "normalize"


class ErrorCode(str, Enum):
    """Error codes for page splitting.

    Values equal their names so they are stable strings suitable for
    metrics and alerting.
    """

    # Format detection
    E_FORMAT_UNSUPPORTED = "E_FORMAT_UNSUPPORTED"
    E_FORMAT_EMPTY = "E_FORMAT_EMPTY"

    # Resource limits
    E_LIMIT_INPUT_TOO_LARGE = "E_LIMIT_INPUT_TOO_LARGE"
    E_LIMIT_TOO_MANY_PAGES = "E_LIMIT_TOO_MANY_PAGES"
    E_LIMIT_IMAGE_TOO_LARGE = "E_LIMIT_IMAGE_TOO_LARGE"

    # Conversion
    E_CONVERT_PARSE = "E_CONVERT_PARSE"
    E_CONVERT_PASSWORD = "E_CONVERT_PASSWORD"
    E_CONVERT_EMPTY = "E_CONVERT_EMPTY"
    E_CONVERT_RENDER = "E_CONVERT_RENDER"
    E_CONVERT_ENCODE = "E_CONVERT_ENCODE"
    E_CONVERT_NORMALIZE = "E_CONVERT_NORMALIZE"
    E_CONVERT_TIMEOUT = "E_CONVERT_TIMEOUT"
    E_CONVERT_INTERNAL = "E_CONVERT_INTERNAL"


_CATEGORY_BY_PREFIX: dict[str, ErrorCategory] = {
    "E_FORMAT_": ErrorCategory.UNSUPPORTED_FORMAT,
    "E_LIMIT_": ErrorCategory.RESOURCE_LIMIT,
    "E_CONVERT_": ErrorCategory.CONVERSION_FAILURE,
}


def category_for_code(code: ErrorCode) -> ErrorCategory:
    """Return the caller-facing category a code rolls up into."""
    for prefix, category in _CATEGORY_BY_PREFIX.items():
        if code.value.startswith(prefix):
            return category
    raise ValueError(f"No category for error code {code!r}")


class PipelineError(BaseModel):
    """Structured, caller-safe description of a failed split.

    ``message`` is always safe to show to an end user.  ``diagnostic``
    carries the raw internal detail for logging and is never the only
    signal available: ``category`` and ``code`` are always set.
    """

    category: ErrorCategory
    code: ErrorCode
    message: str
    stage: ConversionStage | None = None
    diagnostic: str | None = None

    @property
    def is_client_error(self) -> bool:
        """True when the input itself was rejected (not a server fault)."""
        return self.category in (
            ErrorCategory.UNSUPPORTED_FORMAT,
            ErrorCategory.RESOURCE_LIMIT,
        )

    def to_payload(self, include_diagnostic: bool = False) -> dict[str, Any]:
        """Return the JSON-ready error body for a transport layer."""
        payload: dict[str, Any] = {
            "error": self.message,
            "category": self.category.value,
            "code": self.code.value,
            "stage": self.stage.value if self.stage else None,
        }
        if include_diagnostic and self.diagnostic:
            payload["details"] = self.diagnostic
        return payload


class PipelineException(Exception):
    """Raisable exception wrapping a ``PipelineError`` data model.

    Carries the structured error as the ``.error`` attribute for
    inspection and serialization.
    """

    def __init__(self, error: PipelineError) -> None:
        self.error = error
        super().__init__(error.message)

    @property
    def category(self) -> ErrorCategory:
        return self.error.category

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def stage(self) -> ConversionStage | None:
        return self.error.stage


# ---------------------------------------------------------------------------
# Internal stage exceptions
# ---------------------------------------------------------------------------


class SplitException(Exception):
    """Base class for failures raised inside a pipeline stage."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class UnsupportedFormatError(SplitException):
    """The payload matches no supported format."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.E_FORMAT_UNSUPPORTED,
    ) -> None:
        super().__init__(code, message)


class ResourceLimitError(SplitException):
    """A configured size or page-count cap was exceeded."""

    def __init__(self, code: ErrorCode, message: str, limit: int, actual: int) -> None:
        super().__init__(code, message)
        self.limit = limit
        self.actual = actual


_CODE_BY_STAGE: dict[ConversionStage, ErrorCode] = {
    ConversionStage.PARSE: ErrorCode.E_CONVERT_PARSE,
    ConversionStage.RENDER: ErrorCode.E_CONVERT_RENDER,
    ConversionStage.ENCODE: ErrorCode.E_CONVERT_ENCODE,
    ConversionStage.NORMALIZE: ErrorCode.E_CONVERT_NORMALIZE,
}


class ConversionError(SplitException):
    """A recognised format failed to convert at a given stage."""

    def __init__(
        self,
        stage: ConversionStage,
        detail: str,
        code: ErrorCode | None = None,
        page_number: int | None = None,
    ) -> None:
        super().__init__(code or _CODE_BY_STAGE[stage], detail)
        self.stage = stage
        self.detail = detail
        self.page_number = page_number
