"""Format-specific page converters."""

from pagesplit.converters.base import PageConverter
from pagesplit.converters.image import SinglePageImageConverter
from pagesplit.converters.office import OfficeDocumentConverter
from pagesplit.converters.pdf import MultiPageDocumentConverter

__all__ = [
    "PageConverter",
    "MultiPageDocumentConverter",
    "SinglePageImageConverter",
    "OfficeDocumentConverter",
]
