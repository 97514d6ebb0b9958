from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True, slots=True)
class Rect:
    """
    Axis-aligned rectangle.

    The origin convention depends on the space the rectangle lives in:
    - screen space: (x, y) is top-left, y grows downward
    - document space: (x, y) is bottom-left, y grows upward
    """

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("Rect width/height must be non-negative")

    @property
    def x_max(self) -> float:
        return self.x + self.width

    @property
    def y_max(self) -> float:
        return self.y + self.height

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Rect":
        return Rect(
            x=float(d["x"]),
            y=float(d["y"]),
            width=float(d["width"]),
            height=float(d["height"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True, slots=True)
class TextToken:
    """
    One positioned run of text decoded from a page, in document space.

    `height` is the derived font height, used as the unit for every
    line-spacing heuristic.
    """

    text: str
    x: float
    y: float
    width: float
    height: float

    @property
    def x_max(self) -> float:
        return self.x + self.width

    @property
    def y_max(self) -> float:
        return self.y + self.height

    def is_blank(self) -> bool:
        return self.text.strip() == ""

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "TextToken":
        return TextToken(
            text=str(d.get("text", "")),
            x=float(d["x"]),
            y=float(d["y"]),
            width=float(d.get("width", 0.0)),
            height=float(d.get("height", 0.0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True, slots=True)
class HorizontalLine:
    x1: float  # always <= x2
    x2: float
    y: float

    def length(self) -> float:
        return abs(self.x2 - self.x1)

    def to_dict(self) -> dict[str, Any]:
        return {"x1": self.x1, "x2": self.x2, "y": self.y}


class PathOpKind(str, Enum):
    MOVE = "move"
    LINE = "line"
    CURVE = "curve"
    CLOSE = "close"


@dataclass(frozen=True, slots=True)
class PathOp:
    """
    One raw path-construction instruction with its end point in document space.

    CLOSE carries the subpath start point when the backend knows it; consumers
    must not rely on it.
    """

    kind: PathOpKind
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "x": self.x, "y": self.y}
