from __future__ import annotations

import re
from typing import Sequence

from contracts.areas import Area, DataType, is_numeric_type, is_unique_value_type
from contracts.extraction import PageTextData

_PLAIN_DECIMAL_RE = re.compile(r"^\d+\.\d+$")
_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)*")
_WS_RE = re.compile(r"\s+")

DRY_WATER_LEVEL = "Seco"


def parse_number(text: str, fallback: float = 0.0) -> float:
    """
    First number in `text`, read with "." as thousands separator and "," as
    decimal separator ("1.234,5" -> 1234.5). A bare "12.5" stays 12.5.
    """

    if not text:
        return fallback
    s = text.strip()
    if _PLAIN_DECIMAL_RE.match(s):
        return float(s)

    m = _NUMBER_RE.search(text)
    if m is None:
        return fallback
    clean = m.group(0).replace(".", "").replace(",", ".", 1)
    try:
        return float(clean)
    except ValueError:
        return fallback


def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def format_values(texts: Sequence[str], data_type: DataType | None) -> list[str]:
    """
    Shape raw row strings into the stored value sequence of one Area.

    Unique-value types collapse to one value (numbers parsed, water level
    "Seco" when no number is present); sequence types keep every non-blank row.
    """

    clean = [t for t in texts if t.strip() != ""]
    if not clean:
        return []

    if not is_unique_value_type(data_type):
        return clean

    joined = " ".join(clean).strip()
    if data_type == DataType.WATER_LEVEL:
        value = parse_number(joined, fallback=-1.0)
        return [DRY_WATER_LEVEL if value == -1.0 else format_number(value)]
    if is_numeric_type(data_type):
        return [format_number(parse_number(joined))]
    return [joined]


def normalize_for_compare(text: str) -> str:
    """Case-folded, whitespace-collapsed form used to spot rows repeated across a page break."""
    return _WS_RE.sub(" ", text.strip()).casefold()


def merge_page_values(existing: list[str], new: list[str], data_type: DataType | None) -> list[str]:
    """
    Combine the values already collected for a record with one more page.

    Unique-value types take the newest non-empty value. Sequence types append,
    dropping the first new value when it repeats the last collected one.
    """

    if is_unique_value_type(data_type):
        return list(new) if new else list(existing)

    incoming = list(new)
    if existing and incoming and normalize_for_compare(existing[-1]) == normalize_for_compare(incoming[0]):
        incoming.pop(0)
    return list(existing) + incoming


def _area_name_for(areas: Sequence[Area], data_type: DataType) -> str | None:
    for area in areas:
        if area.data_type == data_type:
            return area.name
    return None


def single_value(record: PageTextData, areas: Sequence[Area], data_type: DataType) -> str:
    name = _area_name_for(areas, data_type)
    values = record.values.get(name, []) if name is not None else []
    if not values:
        return "0" if data_type == DataType.Z else ""
    return values[0]


def multiple_values(record: PageTextData, areas: Sequence[Area], data_type: DataType) -> list[str]:
    name = _area_name_for(areas, data_type)
    if name is None:
        return []
    return list(record.values.get(name, []))


def max_depth(record: PageTextData, areas: Sequence[Area]) -> float:
    """Total depth of a record: the depth field, else the deepest depth_from_to value."""

    depth = multiple_values(record, areas, DataType.DEPTH)
    if depth:
        return parse_number(depth[0])

    depths = multiple_values(record, areas, DataType.DEPTH_FROM_TO)
    if depths:
        return max(parse_number(d) for d in depths)
    return 0.0
