from __future__ import annotations

from dataclasses import dataclass, field

from layout.config import LayoutConfig
from ocr.contracts import OcrConfig


@dataclass(frozen=True, slots=True)
class ExtractionConfig:
    """
    Orchestrator configuration.

    Defaults are explicit constants; callers pass overrides explicitly (no
    environment reads in this package).
    """

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    ocr: OcrConfig = field(default_factory=OcrConfig)
    # Screen rectangles are drawn on an unscaled page view unless told otherwise.
    rendered_scale: float = 1.0
    zoom_scale: float = 1.0

    def validate(self) -> None:
        if self.rendered_scale <= 0 or self.zoom_scale <= 0:
            raise ValueError("rendered_scale and zoom_scale must be > 0")
        self.layout.validate()

    def __post_init__(self) -> None:
        self.validate()
