"""Office document converter.

Normalizes Word, Excel, PowerPoint, OpenDocument and RTF input to PDF with
a headless LibreOffice run, then hands the PDF to
:class:`~pagesplit.converters.pdf.MultiPageDocumentConverter`.  Failures
during normalization carry the ``normalize`` stage tag; failures after it
keep the PDF converter's ``parse``/``render``/``encode`` tags.
"""

from __future__ import annotations

import io
import logging
import pathlib
import shutil
import subprocess
import tempfile
import zipfile

from pagesplit.config import SplitConfig
from pagesplit.converters.pdf import MultiPageDocumentConverter
from pagesplit.errors import ConversionError, ConversionStage, ErrorCode
from pagesplit.models import FormatKind, RenderedPage

logger = logging.getLogger("pagesplit")

_OLE2_STREAM_SUFFIXES: list[tuple[bytes, str]] = [
    ("WordDocument".encode("utf-16-le"), ".doc"),
    ("Workbook".encode("utf-16-le"), ".xls"),
    ("Book".encode("utf-16-le"), ".xls"),
    ("PowerPoint Document".encode("utf-16-le"), ".ppt"),
]

_ZIP_PREFIX_SUFFIXES: list[tuple[str, str]] = [
    ("word/", ".docx"),
    ("xl/", ".xlsx"),
    ("ppt/", ".pptx"),
]

_ODF_SUFFIXES: dict[bytes, str] = {
    b"application/vnd.oasis.opendocument.text": ".odt",
    b"application/vnd.oasis.opendocument.spreadsheet": ".ods",
    b"application/vnd.oasis.opendocument.presentation": ".odp",
}

_STDERR_TAIL = 2000


def guess_office_suffix(data: bytes) -> str:
    """Pick a file suffix that steers LibreOffice to the right import filter."""
    if data.startswith(b"{\\rtf"):
        return ".rtf"

    if data.startswith(b"PK\x03\x04"):
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                names = archive.namelist()
                for prefix, suffix in _ZIP_PREFIX_SUFFIXES:
                    if any(name.startswith(prefix) for name in names):
                        return suffix
                if "mimetype" in names:
                    mimetype = archive.read("mimetype").strip()
                    return _ODF_SUFFIXES.get(mimetype, ".odt")
        except zipfile.BadZipFile:
            pass
        return ".docx"

    for marker, suffix in _OLE2_STREAM_SUFFIXES:
        if marker in data:
            return suffix
    return ".doc"


class OfficeDocumentConverter:
    """Render office documents via an intermediate PDF."""

    format_kind = FormatKind.OFFICE_DOCUMENT

    def __init__(
        self,
        config: SplitConfig | None = None,
        pdf_converter: MultiPageDocumentConverter | None = None,
    ) -> None:
        self._config = config or SplitConfig()
        self._pdf_converter = pdf_converter or MultiPageDocumentConverter(self._config)

    def convert(self, data: bytes) -> list[RenderedPage]:
        """Normalize *data* to PDF and render its pages."""
        return self._pdf_converter.convert(self.normalize(data))

    def normalize(self, data: bytes) -> bytes:
        """Render *data* to an intermediate PDF with headless LibreOffice.

        The working directory (input copy, output PDF and a throwaway
        LibreOffice profile) is removed on every exit path.

        Raises
        ------
        ConversionError
            Stage ``normalize`` if LibreOffice is missing, times out, exits
            non-zero, or produces no PDF.
        """
        binary = shutil.which(self._config.office_binary)
        if binary is None:
            raise ConversionError(
                ConversionStage.NORMALIZE,
                f"Office renderer '{self._config.office_binary}' not found on PATH",
            )

        with tempfile.TemporaryDirectory(prefix="pagesplit-office-") as tmp_dir:
            work_dir = pathlib.Path(tmp_dir)
            source = work_dir / f"source{guess_office_suffix(data)}"
            source.write_bytes(data)

            cmd = [
                binary,
                "--headless",
                "--norestore",
                f"-env:UserInstallation={(work_dir / 'profile').as_uri()}",
                "--convert-to",
                "pdf",
                "--outdir",
                str(work_dir),
                str(source),
            ]
            logger.debug("pagesplit | normalize | command=%s", " ".join(cmd))

            try:
                proc = subprocess.run(
                    cmd,
                    check=False,
                    capture_output=True,
                    text=True,
                    timeout=self._config.office_timeout_seconds,
                )
            except FileNotFoundError as exc:
                raise ConversionError(
                    ConversionStage.NORMALIZE,
                    f"Office renderer could not be started: {exc}",
                ) from exc
            except subprocess.TimeoutExpired as exc:
                raise ConversionError(
                    ConversionStage.NORMALIZE,
                    f"Office renderer timed out after "
                    f"{self._config.office_timeout_seconds}s",
                    code=ErrorCode.E_CONVERT_TIMEOUT,
                ) from exc

            if proc.returncode != 0:
                raise ConversionError(
                    ConversionStage.NORMALIZE,
                    f"Office renderer exited with code {proc.returncode}: "
                    f"{(proc.stderr or '')[-_STDERR_TAIL:]}",
                )

            output = source.with_suffix(".pdf")
            if not output.exists():
                raise ConversionError(
                    ConversionStage.NORMALIZE,
                    "Office renderer produced no PDF output",
                )

            return output.read_bytes()
