"""
Canonical contracts shared by every extraction stage.

Stage code should consume/produce these contract objects (not ad-hoc dicts):
- geometry: rectangles, positioned text tokens, path instructions, ruling lines
- areas: user-drawn regions of interest and their semantic data types
- extraction: progress events, per-area results, records and run outcomes
"""

from .areas import (
    NUMERIC_TYPES,
    REPEATING_TYPES,
    UNIQUE_VALUE_TYPES,
    Area,
    DataType,
    is_numeric_type,
    is_unique_value_type,
)
from .extraction import (
    AreaResult,
    ExtractionError,
    ExtractionOutcome,
    ExtractionProgress,
    ExtractionStage,
    ExtractionStatus,
    PageTextData,
)
from .geometry import HorizontalLine, PathOp, PathOpKind, Rect, TextToken

__all__ = [
    "Area",
    "AreaResult",
    "DataType",
    "ExtractionError",
    "ExtractionOutcome",
    "ExtractionProgress",
    "ExtractionStage",
    "ExtractionStatus",
    "HorizontalLine",
    "NUMERIC_TYPES",
    "PageTextData",
    "PathOp",
    "PathOpKind",
    "REPEATING_TYPES",
    "Rect",
    "TextToken",
    "UNIQUE_VALUE_TYPES",
    "is_numeric_type",
    "is_unique_value_type",
]
