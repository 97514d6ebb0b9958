from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class OcrEngineName(str, Enum):
    """
    OCR backends supported by this module.
    """

    TESSERACT_CLI = "tesseract_cli"


@dataclass(frozen=True, slots=True)
class PixelBox:
    """
    Pixel coordinates on the cropped region image:
    - (x0, y0) is top-left
    - (x1, y1) is bottom-right
    """

    x0: int
    y0: int
    x1: int
    y1: int

    def union(self, other: "PixelBox") -> "PixelBox":
        return PixelBox(
            x0=min(self.x0, other.x0),
            y0=min(self.y0, other.y0),
            x1=max(self.x1, other.x1),
            y1=max(self.y1, other.y1),
        )


@dataclass(frozen=True, slots=True)
class OcrLine:
    """
    One recognized text line, words joined with single spaces exactly as the
    engine emitted them.
    """

    text: str
    bbox: PixelBox
    confidence: float | None  # mean word confidence, normalized 0..1


@dataclass(frozen=True, slots=True)
class OcrError:
    code: str
    message: str
    detail: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class OcrLinesResult:
    """
    Lines recognized in one region, in engine reading order.

    On failure, `ok` is False and `lines` is empty. No content is fabricated to
    "fill in" missing OCR results.
    """

    ok: bool
    engine: OcrEngineName
    lines: list[OcrLine]
    errors: list[OcrError]
    meta: dict[str, Any]

    def texts(self) -> list[str]:
        return [ln.text for ln in self.lines]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class OcrConfig:
    """
    OCR configuration.

    The engine only recognizes what it is given; region cropping and raster
    scale are decided by the line source.
    """

    engine: OcrEngineName = OcrEngineName.TESSERACT_CLI
    language: str = "por"
    psm: int | None = 6  # uniform block of text; None => engine default
    timeout_s: float = 120.0
    render_scale: float = 2.0  # page raster scale used for OCR crops
    confidence_floor: float = 0.0  # drop words below this normalized confidence

    def __post_init__(self) -> None:
        if self.confidence_floor < 0.0 or self.confidence_floor > 1.0:
            raise ValueError("confidence_floor must be within [0.0, 1.0]")
        if self.render_scale <= 0:
            raise ValueError("render_scale must be > 0")
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
