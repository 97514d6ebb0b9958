"""
Extraction orchestrator.

Contract:
- Input: a loaded document, the user's Areas, excluded pages
- Output: one record per identifier group (or a cancelled / fatal outcome)
- Stages: validating -> hole_ids -> repeat_areas -> non_repeat_areas

Per-area failures are isolated and reported in the outcome meta; cancellation
is cooperative and never exposes partial records.
"""

from .area_reader import AreaReader, AreaReadError
from .artifacts import load_areas_json, serialize_outcome, write_outcome_json
from .cancellation import CANCELLED_BY_USER, DECLINED_CONFIRMATION, CancellationToken, ExtractionCancelled
from .config import ExtractionConfig
from .fingerprint import areas_fingerprint
from .formatting import (
    DRY_WATER_LEVEL,
    format_values,
    max_depth,
    merge_page_values,
    multiple_values,
    parse_number,
    single_value,
)
from .module import run_extraction
from .session import ExtractionSession

__all__ = [
    "AreaReadError",
    "AreaReader",
    "CANCELLED_BY_USER",
    "CancellationToken",
    "DECLINED_CONFIRMATION",
    "DRY_WATER_LEVEL",
    "ExtractionCancelled",
    "ExtractionConfig",
    "ExtractionSession",
    "areas_fingerprint",
    "format_values",
    "load_areas_json",
    "max_depth",
    "merge_page_values",
    "multiple_values",
    "parse_number",
    "run_extraction",
    "serialize_outcome",
    "single_value",
    "write_outcome_json",
]
