from __future__ import annotations

import ctypes
import logging
import math
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator

from contracts.geometry import PathOp, PathOpKind, TextToken

from .base import DocumentBackend

if TYPE_CHECKING:  # pragma: no cover
    from PIL.Image import Image

logger = logging.getLogger(__name__)

# Nested form XObjects deeper than this are not scanned for ruling lines.
_MAX_FORM_DEPTH = 4


def _require_pdfium():
    try:
        import pypdfium2 as pdfium  # type: ignore

        return pdfium
    except ImportError as e:
        raise RuntimeError("Missing dependency: pypdfium2 is required to read PDF documents.") from e


class Pypdfium2Backend(DocumentBackend):
    """
    PDF backend on top of pypdfium2.

    Tokens are pdfium text rectangles (one per contiguous run of characters on
    a line), positioned at the baseline of their first character and as tall
    as its font. Page-level results are cached per page for the lifetime of
    the backend.
    """

    def __init__(self, pdf_file: Path) -> None:
        pdfium = _require_pdfium()
        self._pdfium = pdfium
        self._pdf_file = pdf_file
        self._doc = pdfium.PdfDocument(str(pdf_file))
        self._tokens: dict[int, list[TextToken]] = {}
        self._ops: dict[int, list[PathOp]] = {}

    def backend_id(self) -> str:
        return "pypdfium2"

    def source_id(self) -> str | None:
        return self._pdf_file.name

    def page_count(self) -> int:
        return len(self._doc)

    def _page(self, page_num: int):
        page_count = len(self._doc)
        if page_num < 1 or page_num > page_count:
            raise ValueError(f"Page out of range: {page_num} (1..{page_count})")
        return self._doc[page_num - 1]

    def page_height(self, page_num: int) -> float:
        return float(self._page(page_num).get_height())

    def _char_metrics(self, textpage: Any, left: float, bottom: float, right: float, top: float) -> tuple[float, float]:
        """
        Baseline y and font height of the first character of a text rect.

        The rect itself is the glyph ink box: shorter than the font for capitals
        and shifted below the baseline by descenders. Falls back to the rect
        when pdfium cannot resolve the character.
        """

        pdfium_c = self._pdfium.raw
        box_height = top - bottom
        index = pdfium_c.FPDFText_GetCharIndexAtPos(
            textpage.raw,
            left + min(1.0, (right - left) / 2),
            bottom + box_height / 2,
            1.0,
            max(box_height / 2, 1.0),
        )
        if index < 0:
            return float(bottom), float(box_height)

        size = float(pdfium_c.FPDFText_GetFontSize(textpage.raw, index))
        matrix = pdfium_c.FS_MATRIX()
        if pdfium_c.FPDFText_GetMatrix(textpage.raw, index, ctypes.byref(matrix)):
            # Vertical scale of the text matrix; Tf sizes are in text space.
            scale = math.hypot(matrix.c, matrix.d)
            if scale > 0:
                size *= scale
        if size <= 0:
            size = box_height

        ox, oy = ctypes.c_double(), ctypes.c_double()
        if not pdfium_c.FPDFText_GetCharOrigin(textpage.raw, index, ctypes.byref(ox), ctypes.byref(oy)):
            return float(bottom), float(size)
        return float(oy.value), float(size)

    def page_tokens(self, page_num: int) -> list[TextToken]:
        cached = self._tokens.get(page_num)
        if cached is not None:
            return cached

        page = self._page(page_num)
        textpage = page.get_textpage()
        tokens: list[TextToken] = []
        try:
            for i in range(textpage.count_rects()):
                left, bottom, right, top = textpage.get_rect(i)
                text = textpage.get_text_bounded(left=left, bottom=bottom, right=right, top=top)
                baseline, font_height = self._char_metrics(textpage, left, bottom, right, top)
                tokens.append(
                    TextToken(
                        text=text.replace("\r", " ").replace("\n", " "),
                        x=float(left),
                        y=baseline,
                        width=float(right - left),
                        height=font_height,
                    )
                )
        finally:
            textpage.close()

        logger.debug("page %d: %d text tokens", page_num, len(tokens))
        self._tokens[page_num] = tokens
        return tokens

    def _iter_path_objects(self, page: Any, *, form: Any = None, chain: tuple = (), depth: int = 0) -> Iterator[tuple[Any, tuple]]:
        pdfium_c = self._pdfium.raw
        for obj in page.get_objects(max_depth=0, form=form):
            obj_chain = (obj.get_matrix(), *chain)
            if obj.type == pdfium_c.FPDF_PAGEOBJ_PATH:
                yield obj, obj_chain
            elif obj.type == pdfium_c.FPDF_PAGEOBJ_FORM and depth < _MAX_FORM_DEPTH:
                yield from self._iter_path_objects(page, form=obj, chain=obj_chain, depth=depth + 1)

    def page_path_ops(self, page_num: int) -> list[PathOp]:
        cached = self._ops.get(page_num)
        if cached is not None:
            return cached

        pdfium_c = self._pdfium.raw
        page = self._page(page_num)
        kinds = {
            pdfium_c.FPDF_SEGMENT_MOVETO: PathOpKind.MOVE,
            pdfium_c.FPDF_SEGMENT_LINETO: PathOpKind.LINE,
            pdfium_c.FPDF_SEGMENT_BEZIERTO: PathOpKind.CURVE,
        }

        ops: list[PathOp] = []
        fx, fy = ctypes.c_float(), ctypes.c_float()
        for obj, chain in self._iter_path_objects(page):
            for i in range(pdfium_c.FPDFPath_CountSegments(obj.raw)):
                seg = pdfium_c.FPDFPath_GetPathSegment(obj.raw, i)
                kind = kinds.get(pdfium_c.FPDFPathSegment_GetType(seg))
                if kind is None or not pdfium_c.FPDFPathSegment_GetPoint(seg, ctypes.byref(fx), ctypes.byref(fy)):
                    continue
                x, y = float(fx.value), float(fy.value)
                # Object matrix first, then each enclosing form matrix.
                for matrix in chain:
                    x, y = matrix.on_point(x, y)
                ops.append(PathOp(kind=kind, x=x, y=y))
                if pdfium_c.FPDFPathSegment_GetClose(seg):
                    ops.append(PathOp(kind=PathOpKind.CLOSE))

        logger.debug("page %d: %d path ops", page_num, len(ops))
        self._ops[page_num] = ops
        return ops

    def render_page(self, page_num: int, *, scale: float) -> "Image":
        page = self._page(page_num)
        bitmap = page.render(scale=scale)
        return bitmap.to_pil().convert("RGB")

    def close(self) -> None:
        self._doc.close()


def open_pdf_document(pdf_file: Path) -> Pypdfium2Backend:
    return Pypdfium2Backend(pdf_file)
