from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .geometry import Rect


class DataType(str, Enum):
    """
    Semantic tag of an Area. Drives value formatting and the choice between
    row reconstruction and blow-count reconstruction.
    """

    DEFAULT = "default"
    HOLE_ID = "hole_id"
    X = "x"
    Y = "y"
    Z = "z"
    DEPTH = "depth"
    DATE = "date"
    DEPTH_FROM_TO = "depth_from_to"
    WATER_LEVEL = "water_level"
    GEOLOGY = "geology"
    NSPT = "nspt"
    CAMPAIGN = "campaign"
    INTERP = "interp"
    GENERIC_INFO = "generic_info"


# Single value per record; later pages replace rather than append.
UNIQUE_VALUE_TYPES: frozenset[DataType] = frozenset(
    {
        DataType.HOLE_ID,
        DataType.X,
        DataType.Y,
        DataType.Z,
        DataType.DEPTH,
        DataType.DATE,
        DataType.CAMPAIGN,
        DataType.WATER_LEVEL,
    }
)

NUMERIC_TYPES: frozenset[DataType] = frozenset({DataType.X, DataType.Y, DataType.Z, DataType.DEPTH})

# Types a configuration UI would pre-flag as repeat-once-per-group.
REPEATING_TYPES: frozenset[DataType] = frozenset(
    {
        DataType.HOLE_ID,
        DataType.X,
        DataType.Y,
        DataType.Z,
        DataType.DEPTH,
        DataType.DATE,
        DataType.WATER_LEVEL,
        DataType.CAMPAIGN,
    }
)


def is_unique_value_type(data_type: DataType | None) -> bool:
    return data_type in UNIQUE_VALUE_TYPES


def is_numeric_type(data_type: DataType | None) -> bool:
    return data_type in NUMERIC_TYPES


@dataclass(frozen=True, slots=True)
class Area:
    """
    User-drawn region of interest: one logical field to extract.

    `rect` is in screen space (top-left origin, unscaled page view) and stays
    None until the user draws it.
    """

    id: str
    name: str
    order: int
    rect: Rect | None = None
    mandatory: bool = False
    ocr: bool = False
    repeat_in_pages: bool = False
    data_type: DataType | None = None
    color: str | None = None

    @property
    def is_identifier(self) -> bool:
        return self.data_type == DataType.HOLE_ID

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Area":
        rect_raw = d.get("rect", d.get("coordinates"))
        data_type_raw = d.get("data_type", d.get("dataType"))
        return Area(
            id=str(d["id"]),
            name=str(d["name"]),
            order=int(d.get("order", 0)),
            rect=(None if rect_raw is None else Rect.from_dict(rect_raw)),
            mandatory=bool(d.get("mandatory", d.get("isMandatory", False))),
            ocr=bool(d.get("ocr", False)),
            repeat_in_pages=bool(d.get("repeat_in_pages", d.get("repeatInPages", False))),
            data_type=(None if data_type_raw is None else DataType(str(data_type_raw))),
            color=(None if d.get("color") is None else str(d["color"])),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "order": self.order,
            "rect": None if self.rect is None else self.rect.to_dict(),
            "mandatory": self.mandatory,
            "ocr": self.ocr,
            "repeat_in_pages": self.repeat_in_pages,
            "data_type": None if self.data_type is None else self.data_type.value,
            "color": self.color,
        }
