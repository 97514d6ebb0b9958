from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from contracts.areas import Area, DataType
from contracts.extraction import AreaResult, ExtractionError
from contracts.geometry import HorizontalLine, Rect, TextToken
from layout.blow_counts import reconstruct_blow_counts
from layout.coordinates import to_document_space
from layout.horizontal_lines import find_horizontal_lines
from layout.region_filter import select_tokens
from layout.rows import reconstruct_rows
from ocr.module import OcrLineSource, ocr_lines_to_values
from pdf_document.engines.base import DocumentBackend

from .cancellation import ExtractionCancelled
from .config import ExtractionConfig

if TYPE_CHECKING:  # pragma: no cover
    from PIL.Image import Image

logger = logging.getLogger(__name__)


class AreaReadError(Exception):
    def __init__(self, code: str, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.detail = detail


@dataclass(slots=True)
class _PageData:
    page_num: int
    height: float
    tokens: list[TextToken]
    lines: list[HorizontalLine] | None = None


class AreaReader:
    """
    Reads one Area on one page, through the text layer or OCR.

    Page data is loaded lazily and kept for the current page only; OCR rasters
    are kept for the whole run so a page is rasterized at most once.
    """

    def __init__(
        self,
        *,
        document: DocumentBackend,
        config: ExtractionConfig,
        ocr_source: OcrLineSource | None,
    ) -> None:
        self._document = document
        self._config = config
        self._ocr = ocr_source
        self._page: _PageData | None = None
        self._rasters: dict[int, "Image"] = {}

    # -- page data ---------------------------------------------------------

    def _page_data(self, page_num: int) -> _PageData:
        if self._page is None or self._page.page_num != page_num:
            self._page = _PageData(
                page_num=page_num,
                height=self._document.page_height(page_num),
                tokens=self._document.page_tokens(page_num),
            )
        return self._page

    def _page_lines(self, page: _PageData) -> list[HorizontalLine]:
        if page.lines is None:
            page.lines = find_horizontal_lines(
                self._document.page_path_ops(page.page_num),
                max_dy=self._config.layout.horizontal_max_dy,
            )
        return page.lines

    def _raster(self, ocr: OcrLineSource, page_num: int) -> "Image":
        image = self._rasters.get(page_num)
        if image is None:
            image = self._document.render_page(page_num, scale=ocr.render_scale)
            self._rasters[page_num] = image
        return image

    # -- region access -----------------------------------------------------

    def _region_tokens(self, rect: Rect, page: _PageData) -> list[TextToken]:
        doc_rect = to_document_space(
            rect,
            rendered_scale=self._config.rendered_scale,
            zoom_scale=self._config.zoom_scale,
            viewport_height=page.height,
        )
        tokens = select_tokens(page.tokens, doc_rect, tolerance=self._config.layout.selection_tolerance)
        return sorted(tokens, key=lambda t: -t.y)

    def _ocr_lines(self, rect: Rect, page_num: int) -> list[str]:
        ocr = self._ocr
        if ocr is None:
            raise AreaReadError("AREA_OCR_UNAVAILABLE", "OCR requested but no OCR engine is open")
        k = self._config.zoom_scale / self._config.rendered_scale
        scaled = Rect(x=rect.x * k, y=rect.y * k, width=rect.width * k, height=rect.height * k)
        result = ocr.extract_lines(rect=scaled, page_num=page_num, raster=self._raster(ocr, page_num))
        if not result.ok:
            first = result.errors[0] if result.errors else None
            raise AreaReadError(
                first.code if first else "AREA_OCR_FAILED",
                first.message if first else "OCR failed",
                first.detail if first else None,
            )
        return result.texts()

    def read_values(self, area: Area, page_num: int) -> list[str]:
        """Raw row strings of `area` on `page_num` (unformatted). Raises on failure."""

        rect = area.rect
        if rect is None:
            return []
        if area.ocr:
            return ocr_lines_to_values(self._ocr_lines(rect, page_num), area.data_type)

        page = self._page_data(page_num)
        tokens = self._region_tokens(rect, page)
        if area.data_type == DataType.NSPT:
            return reconstruct_blow_counts(tokens, config=self._config.layout)
        return reconstruct_rows(tokens, self._page_lines(page), config=self._config.layout)

    def read(self, area: Area, page_num: int) -> AreaResult:
        try:
            values = self.read_values(area, page_num)
        except ExtractionCancelled:
            raise
        except AreaReadError as e:
            logger.warning("area %r on page %d failed: %s (%s)", area.name, page_num, e.message, e.code)
            return AreaResult.failure(
                area_name=area.name,
                page_num=page_num,
                error=ExtractionError(code=e.code, message=e.message, detail=e.detail),
            )
        except Exception as e:
            logger.warning("area %r on page %d failed: %r", area.name, page_num, e)
            return AreaResult.failure(
                area_name=area.name,
                page_num=page_num,
                error=ExtractionError(code="AREA_READ_FAILED", message=str(e) or repr(e), detail={"error": repr(e)}),
            )
        return AreaResult.success(area_name=area.name, page_num=page_num, values=values)

    # -- specialised reads -------------------------------------------------

    def read_text(self, area: Area, page_num: int) -> AreaResult:
        """
        Whole-region text as a single space-joined string, without ruling-line
        evidence. Used for identifiers and mandatory-content checks.
        """

        try:
            rect = area.rect
            if rect is None:
                text = ""
            elif area.ocr:
                text = " ".join(ln.strip() for ln in self._ocr_lines(rect, page_num) if ln.strip())
            else:
                page = self._page_data(page_num)
                text = " ".join(reconstruct_rows(self._region_tokens(rect, page), (), config=self._config.layout))
        except ExtractionCancelled:
            raise
        except Exception as e:
            code = e.code if isinstance(e, AreaReadError) else "AREA_READ_FAILED"
            logger.warning("area %r on page %d failed: %r", area.name, page_num, e)
            return AreaResult.failure(
                area_name=area.name,
                page_num=page_num,
                error=ExtractionError(code=code, message=str(e) or repr(e)),
            )
        text = text.strip()
        return AreaResult.success(area_name=area.name, page_num=page_num, values=[text] if text else [])
