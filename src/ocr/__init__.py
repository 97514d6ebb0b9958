"""
OCR line source (perception only).

Contract:
- Input: one page raster and a screen-space Area rectangle
- Output: recognized text lines in reading order (+ pixel boxes, confidences)
- Constraints: no correction, no field inference; optional confidence floor

The engine is scoped to one extraction run via `open_ocr_line_source`.
"""

from .contracts import (
    OcrConfig,
    OcrEngineName,
    OcrError,
    OcrLine,
    OcrLinesResult,
    PixelBox,
)
from .engines.tesseract_cli import TesseractCliEngine, parse_tsv_lines
from .module import CroppingLineSource, OcrLineSource, ocr_lines_to_values, open_ocr_line_source

__all__ = [
    "CroppingLineSource",
    "OcrConfig",
    "OcrEngineName",
    "OcrError",
    "OcrLine",
    "OcrLineSource",
    "OcrLinesResult",
    "PixelBox",
    "TesseractCliEngine",
    "ocr_lines_to_values",
    "open_ocr_line_source",
    "parse_tsv_lines",
]
