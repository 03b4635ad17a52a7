"""Multi-page document converter for PDF input.

Parses the document with PyMuPDF and renders every page to a JPEG at the
configured DPI.  Pages are rendered in a bounded ``ProcessPoolExecutor``
when more than one worker is configured and the document has more than
one page; results are always reassembled by page number.

All-or-nothing: if any page fails, the whole conversion fails.

The module-level ``_render_single_page()`` function is the process-pool
worker.  It returns a ``RenderedPage`` on success or a
``(page_number, stage, message)`` tuple on failure, so nothing with a
custom constructor has to cross the process boundary as an exception.
"""

from __future__ import annotations

import contextlib
import logging
import pathlib
import tempfile
from collections.abc import Iterator
from concurrent.futures import ProcessPoolExecutor, as_completed

import fitz  # PyMuPDF

from pagesplit.config import SplitConfig
from pagesplit.converters._rendering import PageRenderer
from pagesplit.errors import ConversionError, ConversionStage, ErrorCode
from pagesplit.models import FormatKind, RenderedPage

logger = logging.getLogger("pagesplit")


# ---------------------------------------------------------------------------
# Module-level worker function (must be picklable for ProcessPoolExecutor)
# ---------------------------------------------------------------------------


def _render_single_page(
    file_path: str,
    page_number: int,
    config_dict: dict,
) -> RenderedPage | tuple[int, str, str]:
    """Render one page of the PDF at *file_path*."""
    try:
        renderer = PageRenderer(SplitConfig(**config_dict))
        with fitz.open(file_path) as doc:
            return renderer.render_to_page(doc[page_number - 1], page_number)
    except ConversionError as exc:
        return (page_number, exc.stage.value, exc.detail)
    except Exception as exc:
        return (page_number, ConversionStage.RENDER.value, str(exc))


class MultiPageDocumentConverter:
    """Render every page of a PDF to a JPEG page image."""

    format_kind = FormatKind.PDF

    def __init__(self, config: SplitConfig | None = None) -> None:
        self._config = config or SplitConfig()
        self._renderer = PageRenderer(self._config)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def count_pages(self, data: bytes) -> int:
        """Return the page count from the document's page tree.

        Only the container is parsed; no page is rendered.
        """
        with self._open(data) as doc:
            return doc.page_count

    def convert(self, data: bytes) -> list[RenderedPage]:
        """Render all pages of *data* in document order.

        Raises
        ------
        ConversionError
            Stage ``parse`` if the document cannot be opened, is password
            protected, or has no pages; ``render``/``encode`` if any page
            fails.
        """
        with self._open(data) as doc:
            page_count = doc.page_count
            if page_count == 0:
                raise ConversionError(
                    ConversionStage.PARSE,
                    "Document has zero pages",
                    code=ErrorCode.E_CONVERT_EMPTY,
                )

            workers = min(self._config.effective_workers, page_count)
            if workers <= 1:
                pages = [
                    self._renderer.render_to_page(doc[i], i + 1)
                    for i in range(page_count)
                ]
                return pages

        pages = self._render_parallel(data, page_count, workers)
        return sorted(pages, key=lambda p: p.page_index)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def _open(self, data: bytes) -> Iterator[fitz.Document]:
        """Open *data* as a PDF, guaranteeing the document is closed."""
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise ConversionError(
                ConversionStage.PARSE,
                f"PyMuPDF cannot open document: {exc}",
            ) from exc

        try:
            if doc.needs_pass and not doc.authenticate(""):
                raise ConversionError(
                    ConversionStage.PARSE,
                    "Document requires a password to open",
                    code=ErrorCode.E_CONVERT_PASSWORD,
                )
            yield doc
        finally:
            doc.close()

    def _render_parallel(
        self, data: bytes, page_count: int, workers: int
    ) -> list[RenderedPage]:
        """Render pages in a process pool, failing on the first bad page."""
        config_dict = self._config.model_dump()
        pages: list[RenderedPage] = []

        with tempfile.TemporaryDirectory(prefix="pagesplit-") as tmp_dir:
            pdf_path = pathlib.Path(tmp_dir) / "source.pdf"
            pdf_path.write_bytes(data)

            with ProcessPoolExecutor(max_workers=workers) as executor:
                future_to_page = {
                    executor.submit(
                        _render_single_page, str(pdf_path), page_num, config_dict
                    ): page_num
                    for page_num in range(1, page_count + 1)
                }

                for future in as_completed(future_to_page):
                    page_num = future_to_page[future]
                    try:
                        result = future.result()
                    except Exception as exc:
                        result = (page_num, ConversionStage.RENDER.value, str(exc))

                    if isinstance(result, RenderedPage):
                        pages.append(result)
                        continue

                    for pending in future_to_page:
                        pending.cancel()
                    failed_page, stage, message = result
                    logger.debug(
                        "pagesplit | render | page=%d | stage=%s | detail=%s",
                        failed_page,
                        stage,
                        message,
                    )
                    raise ConversionError(
                        ConversionStage(stage),
                        message,
                        page_number=failed_page,
                    )

        return pages
