from __future__ import annotations

import argparse
import logging
from pathlib import Path

from contracts.extraction import ExtractionStatus
from ocr.contracts import OcrConfig
from pdf_document.engines.pypdfium2_engine import open_pdf_document
from pdf_document.page_selection import parse_page_selection

from .artifacts import load_areas_json, write_outcome_json
from .config import ExtractionConfig
from .module import run_extraction

logger = logging.getLogger(__name__)

_EXIT_CODES = {
    ExtractionStatus.COMPLETE: 0,
    ExtractionStatus.CANCELLED: 1,
    ExtractionStatus.FATAL: 2,
}


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="logsheet-extract",
        description="Extract one record per borehole from a multi-page log PDF using user-drawn areas.",
    )
    p.add_argument("--pdf", required=True, type=Path, help="Input PDF file.")
    p.add_argument(
        "--areas",
        required=True,
        type=Path,
        help='Area definitions: JSON list of areas or a preset {"name": ..., "areas": [...]}.',
    )
    p.add_argument(
        "--excluded-pages",
        default=None,
        help='Pages to skip, e.g. "1,3-5" (1-indexed).',
    )
    p.add_argument("--out", required=True, type=Path, help="Output JSON artifact file path.")
    p.add_argument(
        "--ocr-language",
        default="por",
        help="Tesseract language for OCR areas (default: por).",
    )
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING).",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    areas = load_areas_json(args.areas)
    config = ExtractionConfig(ocr=OcrConfig(language=args.ocr_language))

    with open_pdf_document(args.pdf) as document:
        excluded = parse_page_selection(args.excluded_pages, page_count=document.page_count())
        outcome = run_extraction(areas=areas, document=document, excluded_pages=excluded, config=config)

    write_outcome_json(outcome=outcome, out_file=args.out)
    logger.info("wrote %s (%s)", args.out, outcome.status.value)
    return _EXIT_CODES[outcome.status]


if __name__ == "__main__":
    raise SystemExit(main())
