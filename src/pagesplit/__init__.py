"""pagesplit -- split PDFs, images, and office documents into per-page images."""

from pagesplit.assembler import PageAssembler
from pagesplit.classifier import ErrorClassifier
from pagesplit.config import SplitConfig
from pagesplit.converters import (
    MultiPageDocumentConverter,
    OfficeDocumentConverter,
    PageConverter,
    SinglePageImageConverter,
)
from pagesplit.detector import FormatDetector
from pagesplit.errors import (
    ConversionError,
    ConversionStage,
    ErrorCategory,
    ErrorCode,
    PipelineError,
    PipelineException,
    ResourceLimitError,
    UnsupportedFormatError,
)
from pagesplit.limits import ResourceLimitChecker
from pagesplit.models import (
    FormatKind,
    ImageType,
    PageArtifact,
    PageStatus,
    RenderedPage,
    SplitResult,
    UploadedFile,
)
from pagesplit.pipeline import SplitPipeline

__all__ = [
    # Pipeline
    "SplitPipeline",
    # Config
    "SplitConfig",
    # Stages
    "FormatDetector",
    "ResourceLimitChecker",
    "PageAssembler",
    "ErrorClassifier",
    # Converters
    "PageConverter",
    "MultiPageDocumentConverter",
    "SinglePageImageConverter",
    "OfficeDocumentConverter",
    # Models -- enums
    "FormatKind",
    "ImageType",
    "PageStatus",
    # Models -- data
    "UploadedFile",
    "RenderedPage",
    "PageArtifact",
    "SplitResult",
    # Errors
    "ErrorCategory",
    "ErrorCode",
    "ConversionStage",
    "PipelineError",
    "PipelineException",
    "UnsupportedFormatError",
    "ResourceLimitError",
    "ConversionError",
]
