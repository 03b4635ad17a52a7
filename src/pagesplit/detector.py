"""Format detection for uploaded payloads.

Classifies raw bytes into a :class:`~pagesplit.models.FormatKind` by
sniffing magic bytes first and falling back to the declared MIME type and
then the filename extension.  Detection is pure: it never decodes or
renders the payload.
"""

from __future__ import annotations

import io
import logging
import os
import zipfile

from pagesplit.config import SplitConfig
from pagesplit.models import FormatKind, ImageType

logger = logging.getLogger("pagesplit")

# ---------------------------------------------------------------------------
# Magic byte signatures
# ---------------------------------------------------------------------------

_PDF_MAGIC = b"%PDF-"
_PDF_SEARCH_WINDOW = 1024  # readers tolerate leading junk before %PDF-
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
_ZIP_MAGIC = b"PK\x03\x04"
_RTF_MAGIC = b"{\\rtf"

# BITMAPCOREHEADER through BITMAPV5HEADER
_BMP_DIB_HEADER_SIZES = frozenset({12, 40, 52, 56, 64, 108, 124})

_IMAGE_MAGIC: dict[ImageType, list[bytes]] = {
    ImageType.JPEG: [b"\xff\xd8\xff"],
    ImageType.PNG: [b"\x89PNG\r\n\x1a\n"],
    ImageType.GIF: [b"GIF87a", b"GIF89a"],
    ImageType.WEBP: [b"RIFF"],  # Also requires "WEBP" at offset 8
    ImageType.BMP: [b"BM"],  # Also requires a known DIB header size at offset 14
    ImageType.TIFF: [b"II\x2a\x00", b"MM\x00\x2a"],
}

# OOXML part prefixes that identify an office container inside a ZIP
_OOXML_PREFIXES = ("word/", "xl/", "ppt/")
_ODF_MIME_PREFIX = b"application/vnd.oasis.opendocument."

# ---------------------------------------------------------------------------
# Declared-type allowlists
# ---------------------------------------------------------------------------

_MIME_MAP: dict[str, FormatKind] = {
    "application/pdf": FormatKind.PDF,
    "application/x-pdf": FormatKind.PDF,
    "image/jpeg": FormatKind.RASTER_IMAGE,
    "image/jpg": FormatKind.RASTER_IMAGE,
    "image/pjpeg": FormatKind.RASTER_IMAGE,
    "image/png": FormatKind.RASTER_IMAGE,
    "image/gif": FormatKind.RASTER_IMAGE,
    "image/webp": FormatKind.RASTER_IMAGE,
    "image/bmp": FormatKind.RASTER_IMAGE,
    "image/x-ms-bmp": FormatKind.RASTER_IMAGE,
    "image/tiff": FormatKind.RASTER_IMAGE,
    "application/msword": FormatKind.OFFICE_DOCUMENT,
    "application/vnd.ms-excel": FormatKind.OFFICE_DOCUMENT,
    "application/vnd.ms-powerpoint": FormatKind.OFFICE_DOCUMENT,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": FormatKind.OFFICE_DOCUMENT,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": FormatKind.OFFICE_DOCUMENT,
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": FormatKind.OFFICE_DOCUMENT,
    "application/vnd.oasis.opendocument.text": FormatKind.OFFICE_DOCUMENT,
    "application/vnd.oasis.opendocument.spreadsheet": FormatKind.OFFICE_DOCUMENT,
    "application/vnd.oasis.opendocument.presentation": FormatKind.OFFICE_DOCUMENT,
    "application/rtf": FormatKind.OFFICE_DOCUMENT,
    "text/rtf": FormatKind.OFFICE_DOCUMENT,
}

_EXTENSION_MAP: dict[str, FormatKind] = {
    ".pdf": FormatKind.PDF,
    ".jpg": FormatKind.RASTER_IMAGE,
    ".jpeg": FormatKind.RASTER_IMAGE,
    ".png": FormatKind.RASTER_IMAGE,
    ".gif": FormatKind.RASTER_IMAGE,
    ".webp": FormatKind.RASTER_IMAGE,
    ".bmp": FormatKind.RASTER_IMAGE,
    ".tif": FormatKind.RASTER_IMAGE,
    ".tiff": FormatKind.RASTER_IMAGE,
    ".doc": FormatKind.OFFICE_DOCUMENT,
    ".docx": FormatKind.OFFICE_DOCUMENT,
    ".xls": FormatKind.OFFICE_DOCUMENT,
    ".xlsx": FormatKind.OFFICE_DOCUMENT,
    ".ppt": FormatKind.OFFICE_DOCUMENT,
    ".pptx": FormatKind.OFFICE_DOCUMENT,
    ".odt": FormatKind.OFFICE_DOCUMENT,
    ".ods": FormatKind.OFFICE_DOCUMENT,
    ".odp": FormatKind.OFFICE_DOCUMENT,
    ".rtf": FormatKind.OFFICE_DOCUMENT,
}

_GENERIC_MIME_TYPES = frozenset(
    {"", "application/octet-stream", "binary/octet-stream", "application/unknown"}
)


def normalize_mime(mime_type: str | None) -> str:
    """Lowercase a declared MIME type and drop any parameters."""
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


def sniff_image_type(header: bytes) -> ImageType | None:
    """Return the raster sub-format whose magic bytes prefix *header*."""
    for image_type, signatures in _IMAGE_MAGIC.items():
        for sig in signatures:
            if header[: len(sig)] == sig:
                if image_type == ImageType.WEBP and header[8:12] != b"WEBP":
                    continue
                if image_type == ImageType.BMP and not _has_dib_header(header):
                    continue
                return image_type
    return None


def _has_dib_header(header: bytes) -> bool:
    if len(header) < 18:
        return False
    return int.from_bytes(header[14:18], "little") in _BMP_DIB_HEADER_SIZES


def _is_plain_text(prefix: bytes) -> bool:
    """Return True if *prefix* reads as printable text with some content."""
    if not prefix.strip():
        return False
    try:
        text = prefix.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return all(ch.isprintable() or ch in "\t\n\r\f" for ch in text)


class FormatDetector:
    """Classify raw input into a canonical :class:`FormatKind`."""

    def __init__(self, config: SplitConfig | None = None) -> None:
        self.config = config or SplitConfig()

    def detect(
        self,
        data: bytes,
        mime_type: str | None = None,
        file_name: str | None = None,
    ) -> FormatKind:
        """Return the format kind of *data*.

        The sniffed signature wins over a declared type that disagrees with
        it.  Without a signature match the declared type is used when it is
        allowlisted, then the filename extension when no specific type was
        declared.  Returns ``FormatKind.UNSUPPORTED`` when nothing matches.
        """
        declared_mime = normalize_mime(mime_type)
        declared = _MIME_MAP.get(declared_mime)
        ext = os.path.splitext(file_name)[1].lower() if file_name else ""
        pdf_declared = (
            declared == FormatKind.PDF or _EXTENSION_MAP.get(ext) == FormatKind.PDF
        )
        sniffed = self.sniff(data, pdf_declared=pdf_declared)

        if sniffed is not None:
            if declared is not None and declared != sniffed:
                logger.debug(
                    "pagesplit | detect | declared=%s | sniffed=%s | using sniffed",
                    declared_mime,
                    sniffed.value,
                )
            return sniffed

        if declared is not None:
            return declared

        if declared_mime in _GENERIC_MIME_TYPES and ext:
            by_extension = _EXTENSION_MAP.get(ext)
            if by_extension is not None:
                return by_extension

        return FormatKind.UNSUPPORTED

    @staticmethod
    def is_declared_supported(
        file_name: str | None, mime_type: str | None = None
    ) -> bool:
        """Return True if the declared MIME type or extension is allowlisted."""
        if normalize_mime(mime_type) in _MIME_MAP:
            return True
        if not file_name:
            return False
        return os.path.splitext(file_name)[1].lower() in _EXTENSION_MAP

    def sniff(self, data: bytes, pdf_declared: bool = False) -> FormatKind | None:
        """Match the payload header against known format signatures.

        Signatures anchored at offset 0 are checked first.  A ``%PDF-``
        marker further into the header is accepted only when the bytes
        before it are not plain text, or when the caller declared a PDF.
        """
        header = data[: self.config.sniff_bytes]

        if header.startswith(_PDF_MAGIC):
            return FormatKind.PDF
        if sniff_image_type(header) is not None:
            return FormatKind.RASTER_IMAGE
        if header.startswith(_OLE2_MAGIC) or header.startswith(_RTF_MAGIC):
            return FormatKind.OFFICE_DOCUMENT
        if header.startswith(_ZIP_MAGIC):
            if self._is_office_zip(data):
                return FormatKind.OFFICE_DOCUMENT
            return None

        offset = header.find(_PDF_MAGIC, 0, _PDF_SEARCH_WINDOW)
        if offset > 0 and (pdf_declared or not _is_plain_text(header[:offset])):
            return FormatKind.PDF
        return None

    @staticmethod
    def _is_office_zip(data: bytes) -> bool:
        """Check a ZIP container for OOXML parts or an ODF mimetype entry.

        Only the central directory and the small ``mimetype`` member are
        read; document parts are never decompressed.
        """
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                names = archive.namelist()
                if any(name.startswith(_OOXML_PREFIXES) for name in names):
                    return True
                if "mimetype" in names:
                    info = archive.getinfo("mimetype")
                    if info.file_size > 256:
                        return False
                    return archive.read("mimetype").startswith(_ODF_MIME_PREFIX)
        except zipfile.BadZipFile:
            return False
        return False
