from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from contracts.geometry import PathOp, TextToken

if TYPE_CHECKING:  # pragma: no cover
    from PIL.Image import Image


class DocumentBackend(ABC):
    """
    Read-only access to one loaded document.

    Backends must:
    - use 1-indexed page numbers
    - report tokens and path instructions in document space (bottom-left
      origin, y up, unscaled page units)
    - perform NO region filtering, row grouping or OCR
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    def source_id(self) -> str | None:
        """Stable identity of the loaded source (used for fingerprints)."""
        return None

    @abstractmethod
    def page_count(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def page_height(self, page_num: int) -> float:
        raise NotImplementedError

    @abstractmethod
    def page_tokens(self, page_num: int) -> list[TextToken]:
        raise NotImplementedError

    @abstractmethod
    def page_path_ops(self, page_num: int) -> list[PathOp]:
        raise NotImplementedError

    @abstractmethod
    def render_page(self, page_num: int, *, scale: float) -> "Image":
        """Rasterize a full page; pixel (0, 0) is the top-left corner."""
        raise NotImplementedError

    def close(self) -> None:
        return None

    def __enter__(self) -> "DocumentBackend":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
