from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ..contracts import OcrConfig, OcrLinesResult


class OcrEngine(ABC):
    """
    Interface for OCR line recognizers.

    IMPORTANT:
    - Engines must return literal line hypotheses in reading order.
    - Engines must NOT apply semantic correction or field-specific filtering.
    """

    @abstractmethod
    def recognize_lines(self, *, config: OcrConfig, image_file: Path) -> OcrLinesResult:
        raise NotImplementedError
