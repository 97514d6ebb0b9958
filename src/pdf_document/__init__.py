"""
Document access (PDF -> positioned tokens, path instructions, page rasters).

This package is intentionally limited to reading the document:
- It exposes text tokens and path instructions in document space.
- It rasterizes pages on request (for OCR).
- It performs NO region filtering, row grouping or OCR.
- It is the ONLY package allowed to open PDFs.
"""

from .engines import DocumentBackend, Pypdfium2Backend, open_pdf_document
from .page_selection import format_page_numbers, parse_page_selection

__all__ = [
    "DocumentBackend",
    "Pypdfium2Backend",
    "format_page_numbers",
    "open_pdf_document",
    "parse_page_selection",
]
