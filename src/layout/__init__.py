"""
Geometric text reconstruction.

Turns the positioned tokens of one page region into ordered row strings:
- coordinate mapping between the screen view and document space
- region filtering with a fixed tolerance
- horizontal ruling-line detection from raw path instructions
- row reconstruction (wrapped text vs new rows, split numeric values)
- blow-count reconstruction for SPT columns

Pure functions over contract objects; no I/O, no OCR.
"""

from .blow_counts import is_blow_count, is_number, reconstruct_blow_counts
from .config import LayoutConfig
from .coordinates import to_document_space, to_raster_box, to_screen_space
from .horizontal_lines import find_horizontal_lines, has_horizontal_line
from .region_filter import select_tokens
from .rows import RowReconstructor, RowState, reconstruct_rows, sort_reading_order

__all__ = [
    "LayoutConfig",
    "RowReconstructor",
    "RowState",
    "find_horizontal_lines",
    "has_horizontal_line",
    "is_blow_count",
    "is_number",
    "reconstruct_blow_counts",
    "reconstruct_rows",
    "select_tokens",
    "sort_reading_order",
    "to_document_space",
    "to_raster_box",
    "to_screen_space",
]
