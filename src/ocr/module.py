from __future__ import annotations

import logging
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Protocol

from contracts.areas import DataType
from contracts.geometry import Rect
from layout.blow_counts import is_blow_count
from layout.coordinates import to_raster_box
from pdf_document.engines.base import DocumentBackend

from .contracts import OcrConfig, OcrEngineName, OcrLinesResult
from .engines.base import OcrEngine
from .engines.tesseract_cli import TesseractCliEngine

if TYPE_CHECKING:  # pragma: no cover
    from PIL.Image import Image

logger = logging.getLogger(__name__)


class OcrLineSource(Protocol):
    """
    Recognized lines for one screen-space rectangle of one page.

    `raster` is an optional pre-rendered page image at the source's render
    scale; when omitted the source renders the page itself.
    """

    render_scale: float

    def extract_lines(self, *, rect: Rect, page_num: int, raster: "Image | None" = None) -> OcrLinesResult:
        ...


def _get_engine(engine: OcrEngineName) -> OcrEngine:
    if engine == OcrEngineName.TESSERACT_CLI:
        return TesseractCliEngine()
    raise ValueError(f"Unsupported OCR engine: {engine}")


class CroppingLineSource:
    """
    Crops the Area out of the page raster and hands the crop to an OCR engine.

    Crops are materialized under `work_dir` (the engine reads files) and
    removed right after recognition.
    """

    def __init__(self, *, document: DocumentBackend, config: OcrConfig, engine: OcrEngine, work_dir: Path) -> None:
        self._document = document
        self._config = config
        self._engine = engine
        self._work_dir = work_dir
        self._n_crops = 0
        self.render_scale = config.render_scale

    def extract_lines(self, *, rect: Rect, page_num: int, raster: "Image | None" = None) -> OcrLinesResult:
        image = raster if raster is not None else self._document.render_page(page_num, scale=self.render_scale)

        left, top, right, bottom = to_raster_box(rect, scale=self.render_scale)
        right = min(right, image.width)
        bottom = min(bottom, image.height)
        if right <= left or bottom <= top:
            # Degenerate or off-page region: nothing to read.
            return OcrLinesResult(
                ok=True,
                engine=self._config.engine,
                lines=[],
                errors=[],
                meta={"note": "empty crop", "page_num": page_num},
            )

        self._n_crops += 1
        crop_file = self._work_dir / f"p{page_num:03d}_c{self._n_crops:05d}.png"
        image.crop((left, top, right, bottom)).save(crop_file, format="PNG")
        try:
            result = self._engine.recognize_lines(config=self._config, image_file=crop_file)
        finally:
            crop_file.unlink(missing_ok=True)

        logger.debug("page %d: OCR read %d lines (ok=%s)", page_num, len(result.lines), result.ok)
        return result


@contextmanager
def open_ocr_line_source(document: DocumentBackend, config: OcrConfig) -> Iterator[CroppingLineSource]:
    """
    Acquire the OCR engine for one extraction run.

    The scratch directory (and with it every crop) is removed on every exit
    path, including cancellation and errors raised by the caller.
    """

    engine = _get_engine(config.engine)
    with tempfile.TemporaryDirectory(prefix="logsheet-ocr-") as tmp:
        logger.info("OCR engine acquired (%s, language=%s)", config.engine.value, config.language)
        try:
            yield CroppingLineSource(document=document, config=config, engine=engine, work_dir=Path(tmp))
        finally:
            logger.info("OCR engine released")


def ocr_lines_to_values(lines: list[str], data_type: DataType | None) -> list[str]:
    """
    Normalize OCR lines to the same shape as row reconstruction output.

    Blow-count Areas are split into their individual measurements; every other
    type keeps one value per non-blank line.
    """

    texts = [ln.strip() for ln in lines if ln.strip()]
    if data_type != DataType.NSPT:
        return texts
    return [part for ln in texts for part in ln.split() if is_blow_count(part)]
