"""Shared fixtures for pagesplit tests.

Provides programmatic PDF, raster image, and office container fixtures plus
a single-worker config so most tests stay in-process.
"""

from __future__ import annotations

import io
import struct
import zipfile
import zlib
from pathlib import Path

import fitz  # PyMuPDF
import pytest
from PIL import Image, ImageDraw, PngImagePlugin
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from pagesplit.config import SplitConfig
from pagesplit.pipeline import SplitPipeline

# Password used by the encrypted_pdf_bytes fixture
ENCRYPTED_PDF_PASSWORD = "testpass123"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_pdf_bytes(page_count: int, pagesize: tuple[float, float] = letter) -> bytes:
    """Create a PDF with *page_count* pages, each labelled with its number."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=pagesize)
    for page_num in range(1, page_count + 1):
        c.setFont("Helvetica-Bold", 18)
        c.drawString(72, 700, f"Chapter {page_num}")
        c.setFont("Helvetica", 9)
        c.drawString(280, 40, f"Page {page_num} of {page_count}")
        c.showPage()
    c.save()
    return buf.getvalue()


def make_image_bytes(
    fmt: str,
    size: tuple[int, int] = (64, 48),
    mode: str = "RGB",
) -> bytes:
    """Create a small synthetic image encoded as *fmt*."""
    img = Image.new(mode, size, "white")
    if mode in ("RGB", "RGBA", "L"):
        ImageDraw.Draw(img).rectangle((4, 4, size[0] // 2, size[1] // 2), fill="black")
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_png_with_text(size: tuple[int, int], key: str, value: str) -> bytes:
    """Create a PNG carrying a ``tEXt`` chunk."""
    info = PngImagePlugin.PngInfo()
    info.add_text(key, value)
    buf = io.BytesIO()
    Image.new("RGB", size, "white").save(buf, format="PNG", pnginfo=info)
    return buf.getvalue()


def _png_chunk(chunk_type: bytes, payload: bytes) -> bytes:
    crc = zlib.crc32(chunk_type + payload) & 0xFFFFFFFF
    return struct.pack(">I", len(payload)) + chunk_type + payload + struct.pack(">I", crc)


def make_png_header(width: int, height: int) -> bytes:
    """Create a PNG that declares *width* x *height* but holds no pixel data."""
    ihdr = struct.pack(">IIBBBBB", width, height, 1, 0, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", ihdr)
        + _png_chunk(b"IDAT", b"")
        + _png_chunk(b"IEND", b"")
    )


def make_zip_bytes(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        for name, content in members.items():
            archive.writestr(name, content)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Config / pipeline
# ---------------------------------------------------------------------------


@pytest.fixture()
def split_config() -> SplitConfig:
    """Default config pinned to one worker so rendering stays in-process."""
    return SplitConfig(worker_pool_size=1)


@pytest.fixture()
def pipeline(split_config: SplitConfig) -> SplitPipeline:
    return SplitPipeline(split_config)


# ---------------------------------------------------------------------------
# PDF fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def three_page_pdf_bytes() -> bytes:
    """Three letter-size pages."""
    return make_pdf_bytes(3)


@pytest.fixture()
def one_page_pdf_bytes() -> bytes:
    return make_pdf_bytes(1)


@pytest.fixture()
def three_page_pdf(tmp_path: Path, three_page_pdf_bytes: bytes) -> Path:
    path = tmp_path / "doc.pdf"
    path.write_bytes(three_page_pdf_bytes)
    return path


@pytest.fixture()
def encrypted_pdf_bytes() -> bytes:
    """Password-protected PDF (AES-256 encryption)."""
    doc = fitz.open()
    page = doc.new_page()
    tw = fitz.TextWriter(page.rect)
    tw.append((100, 700), "This document is encrypted and confidential.")
    tw.write_text(page)
    data = doc.tobytes(
        encryption=fitz.PDF_ENCRYPT_AES_256,
        user_pw=ENCRYPTED_PDF_PASSWORD,
        owner_pw="ownerpass456",
        permissions=fitz.PDF_PERM_ACCESSIBILITY | fitz.PDF_PERM_PRINT,
    )
    doc.close()
    return data


@pytest.fixture()
def truncated_pdf_bytes() -> bytes:
    """A PDF header followed by garbage."""
    return b"%PDF-1.7\n" + b"\x00garbage" * 64


# ---------------------------------------------------------------------------
# Image fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture()
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture()
def gif_bytes() -> bytes:
    return make_image_bytes("GIF")


@pytest.fixture()
def webp_bytes() -> bytes:
    return make_image_bytes("WEBP")


@pytest.fixture()
def bmp_bytes() -> bytes:
    return make_image_bytes("BMP")


@pytest.fixture()
def tiff_bytes() -> bytes:
    return make_image_bytes("TIFF")


# ---------------------------------------------------------------------------
# Office fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def docx_bytes() -> bytes:
    """Minimal OOXML word-processing container (not a renderable document)."""
    return make_zip_bytes(
        {
            "[Content_Types].xml": b"<Types/>",
            "word/document.xml": b"<w:document/>",
        }
    )


@pytest.fixture()
def odt_bytes() -> bytes:
    return make_zip_bytes(
        {
            "mimetype": b"application/vnd.oasis.opendocument.text",
            "content.xml": b"<office:document-content/>",
        }
    )


@pytest.fixture()
def plain_zip_bytes() -> bytes:
    return make_zip_bytes({"notes.txt": b"hello"})
