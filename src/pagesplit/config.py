"""Configuration model for the pagesplit pipeline.

Provides ``SplitConfig`` with all tunable parameters and sensible
defaults.  Supports loading overrides from YAML or JSON files via the
``from_file()`` classmethod.
"""

from __future__ import annotations

import json
import os
import pathlib

from PIL import Image
from pydantic import BaseModel, model_validator


class SplitConfig(BaseModel):
    """All tunable parameters with sensible defaults.

    Override individual values via constructor kwargs or load a complete
    config from a file with ``SplitConfig.from_file(path)``.
    """

    # --- Identity ---
    parser_version: str = "pagesplit:1.0.0"

    # --- Resource Limits ---
    max_input_bytes: int = 50 * 1024 * 1024
    max_pages: int = 200
    max_image_pixels: int = 100_000_000

    # --- Rendering ---
    render_dpi: int = 200
    max_page_width: int = 1240
    max_page_height: int = 1754
    jpeg_quality: int = 90
    worker_pool_size: int | None = None  # None => os.cpu_count()

    # --- Office Normalization ---
    office_binary: str = "soffice"
    office_timeout_seconds: float = 120.0

    # --- Detection ---
    sniff_bytes: int = 2048

    # --- Logging / PII Safety ---
    log_file_names: bool = True

    @model_validator(mode="after")
    def _validate_ranges(self) -> SplitConfig:
        """Reject limits that would make every input fail or never bind."""
        if self.max_input_bytes <= 0:
            raise ValueError("max_input_bytes must be positive")
        if self.max_pages <= 0:
            raise ValueError("max_pages must be positive")
        if self.max_image_pixels <= 0:
            raise ValueError("max_image_pixels must be positive")
        ceiling = pillow_pixel_ceiling()
        if ceiling is not None and self.max_image_pixels > ceiling:
            raise ValueError(
                f"max_image_pixels must not exceed {ceiling}, "
                "the point where Pillow refuses to open an image"
            )
        if not 72 <= self.render_dpi <= 600:
            raise ValueError("render_dpi must be between 72 and 600")
        if self.max_page_width <= 0 or self.max_page_height <= 0:
            raise ValueError("max_page_width and max_page_height must be positive")
        if not 1 <= self.jpeg_quality <= 95:
            raise ValueError("jpeg_quality must be between 1 and 95")
        if self.worker_pool_size is not None and self.worker_pool_size < 1:
            raise ValueError("worker_pool_size must be >= 1 when set")
        if self.office_timeout_seconds <= 0:
            raise ValueError("office_timeout_seconds must be positive")
        if self.sniff_bytes < 32:
            raise ValueError("sniff_bytes must be at least 32")
        return self

    @property
    def effective_workers(self) -> int:
        """Worker pool size, falling back to the CPU count."""
        return self.worker_pool_size or os.cpu_count() or 1

    @classmethod
    def from_file(cls, path: str) -> SplitConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Any keys present in the file override the
        corresponding defaults; keys not present retain their defaults.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml

            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)


def pillow_pixel_ceiling() -> int | None:
    """Pixel count above which ``Image.open`` raises ``DecompressionBombError``.

    Returns None when Pillow's guard has been switched off.
    """
    if Image.MAX_IMAGE_PIXELS is None:
        return None
    return 2 * Image.MAX_IMAGE_PIXELS
