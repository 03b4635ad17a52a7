"""Command-line entry point: split one file into page images on disk.

Usage:
    pagesplit invoice.pdf
    pagesplit scan.tiff --out-dir pages/
    pagesplit report.docx --config pagesplit.yaml --manifest
    pagesplit upload.bin --mime application/pdf --dpi 150 --workers 4
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pagesplit.assembler import base_name
from pagesplit.config import SplitConfig
from pagesplit.errors import PipelineException
from pagesplit.models import UploadedFile
from pagesplit.pipeline import SplitPipeline

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_SPLIT_FAILED = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagesplit",
        description="Split a PDF, image, or office document into per-page images.",
    )
    parser.add_argument("input", help="Path of the file to split")
    parser.add_argument(
        "--out-dir",
        type=str,
        default=".",
        help="Directory for the page images (default: current dir)",
    )
    parser.add_argument(
        "--mime",
        type=str,
        default=None,
        help="Declared MIME type of the input (default: detect from content)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML or JSON config file overriding the defaults",
    )
    parser.add_argument(
        "--dpi",
        type=int,
        default=None,
        help="Render resolution for document pages (default: from config)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Render worker processes (default: from config)",
    )
    parser.add_argument(
        "--manifest",
        action="store_true",
        help="Also write <name>_manifest.json describing the pages",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def _load_config(args: argparse.Namespace) -> SplitConfig:
    config = SplitConfig.from_file(args.config) if args.config else SplitConfig()
    overrides: dict = {}
    if args.dpi is not None:
        overrides["render_dpi"] = args.dpi
    if args.workers is not None:
        overrides["worker_pool_size"] = args.workers
    if overrides:
        # Rebuild rather than model_copy so the range validator runs.
        config = SplitConfig(**{**config.model_dump(), **overrides})
    return config


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        config = _load_config(args)
        upload = UploadedFile.from_path(args.input, mime_type=args.mime)
    except (OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_USAGE

    pipeline = SplitPipeline(config)
    try:
        result = pipeline.split(upload)
    except PipelineException as exc:
        print(
            f"ERROR [{exc.code.value}] {exc.error.message}",
            file=sys.stderr,
        )
        return EXIT_SPLIT_FAILED

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    for page in result.pages:
        (out_dir / page.file_name).write_bytes(page.image_bytes)
        print(
            f"  page {page.page_number}/{result.total_pages}: "
            f"{page.file_name} ({page.size_bytes} bytes)"
        )

    if args.manifest:
        manifest_path = out_dir / f"{base_name(result.original_file_name)}_manifest.json"
        with open(manifest_path, "w") as f:
            json.dump(result.to_manifest(), f, indent=2)
        print(f"  manifest: {manifest_path}")

    print(
        f"Split {result.original_file_name} into {result.total_pages} page(s) "
        f"in {result.processing_time_seconds:.2f}s"
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
