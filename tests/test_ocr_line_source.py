from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from PIL import Image

from contracts.areas import DataType
from contracts.geometry import Rect
from ocr.contracts import OcrConfig, OcrEngineName, OcrLine, OcrLinesResult, PixelBox
from ocr.engines.base import OcrEngine
from ocr.engines.tesseract_cli import TesseractCliEngine, parse_tsv_lines
from ocr.module import CroppingLineSource, ocr_lines_to_values, open_ocr_line_source

from _fakes import FakeDocument

_HEADER = "level\tpage_num\tblock_num\tpar_num\tline_num\tword_num\tleft\ttop\twidth\theight\tconf\ttext"


def _row(level: int, line: int, word: int, left: int, conf: str, text: str, *, block: int = 1) -> str:
    return "\t".join(str(v) for v in [level, 1, block, 1, line, word, left, 10 * line, 20, 10, conf, text])


class _RecordingEngine(OcrEngine):
    def __init__(self, texts: list[str]) -> None:
        self._texts = texts
        self.seen: list[tuple[Path, bool, tuple[int, int]]] = []

    def recognize_lines(self, *, config: OcrConfig, image_file: Path) -> OcrLinesResult:
        with Image.open(image_file) as im:
            self.seen.append((image_file, image_file.exists(), im.size))
        return OcrLinesResult(
            ok=True,
            engine=OcrEngineName.TESSERACT_CLI,
            lines=[OcrLine(text=t, bbox=PixelBox(x0=0, y0=0, x1=1, y1=1), confidence=None) for t in self._texts],
            errors=[],
            meta={},
        )


class TestTesseractTsvParsing(unittest.TestCase):
    def test_words_group_into_lines_in_word_order(self) -> None:
        tsv = "\n".join(
            [
                _HEADER,
                _row(1, 0, 0, 0, "-1", ""),
                _row(5, 1, 2, 60, "91", "ARGILOSO"),
                _row(5, 1, 1, 10, "95", "SILTE"),
                _row(5, 2, 1, 10, "88", "AREIA"),
            ]
        )
        lines = parse_tsv_lines(tsv)
        self.assertEqual([ln.text for ln in lines], ["SILTE ARGILOSO", "AREIA"])
        self.assertEqual(lines[0].bbox, PixelBox(x0=10, y0=10, x1=80, y1=20))
        self.assertAlmostEqual(lines[0].confidence or 0.0, 0.93)

    def test_confidence_floor_and_malformed_rows(self) -> None:
        tsv = "\n".join(
            [
                _HEADER,
                _row(5, 1, 1, 10, "20", "ruido"),
                _row(5, 1, 2, 40, "90", "12"),
                _row(5, 2, 1, 10, "90", "x").replace("\t10\t20\t", "\tabc\t20\t", 1),
                _row(5, 3, 1, 10, "90", "   "),
            ]
        )
        lines = parse_tsv_lines(tsv, confidence_floor=0.5)
        self.assertEqual([ln.text for ln in lines], ["12"])

    def test_empty_output(self) -> None:
        self.assertEqual(parse_tsv_lines(""), [])
        self.assertEqual(parse_tsv_lines(_HEADER), [])

    def test_missing_input_file_is_reported(self) -> None:
        result = TesseractCliEngine().recognize_lines(config=OcrConfig(), image_file=Path("/nonexistent/crop.png"))
        self.assertFalse(result.ok)
        self.assertEqual(result.errors[0].code, "OCR_INPUT_NOT_FOUND")


class TestCroppingLineSource(unittest.TestCase):
    def test_crops_region_at_render_scale_and_removes_crop(self) -> None:
        engine = _RecordingEngine(["10/30 12"])
        with tempfile.TemporaryDirectory() as tmp:
            source = CroppingLineSource(
                document=FakeDocument({1: []}),
                config=OcrConfig(render_scale=2.0),
                engine=engine,
                work_dir=Path(tmp),
            )
            result = source.extract_lines(rect=Rect(x=10, y=20, width=30, height=40), page_num=1)
            self.assertEqual(list(Path(tmp).iterdir()), [])

        self.assertTrue(result.ok)
        self.assertEqual(result.texts(), ["10/30 12"])
        _, existed, size = engine.seen[0]
        self.assertTrue(existed)
        self.assertEqual(size, (60, 80))

    def test_uses_given_raster_instead_of_rendering(self) -> None:
        document = FakeDocument({1: []})
        raster = Image.new("RGB", (100, 100), "white")
        with tempfile.TemporaryDirectory() as tmp:
            source = CroppingLineSource(
                document=document, config=OcrConfig(), engine=_RecordingEngine([]), work_dir=Path(tmp)
            )
            source.extract_lines(rect=Rect(x=0, y=0, width=10, height=10), page_num=1, raster=raster)
        self.assertEqual(document.render_calls, [])

    def test_off_page_region_reads_nothing(self) -> None:
        engine = _RecordingEngine(["never"])
        with tempfile.TemporaryDirectory() as tmp:
            source = CroppingLineSource(
                document=FakeDocument({1: []}), config=OcrConfig(), engine=engine, work_dir=Path(tmp)
            )
            result = source.extract_lines(rect=Rect(x=5000, y=5000, width=10, height=10), page_num=1)
        self.assertTrue(result.ok)
        self.assertEqual(result.lines, [])
        self.assertEqual(engine.seen, [])

    def test_session_scratch_directory_is_removed(self) -> None:
        with open_ocr_line_source(FakeDocument({1: []}), OcrConfig()) as source:
            work_dir = source._work_dir
            self.assertTrue(work_dir.is_dir())
        self.assertFalse(work_dir.exists())


class TestOcrLinesToValues(unittest.TestCase):
    def test_blank_lines_dropped(self) -> None:
        self.assertEqual(ocr_lines_to_values([" SILTE ", "", "  "], DataType.GEOLOGY), ["SILTE"])

    def test_blow_count_lines_split_into_measurements(self) -> None:
        self.assertEqual(ocr_lines_to_values(["10/30 12", "x -"], DataType.NSPT), ["10/30", "12", "-"])


if __name__ == "__main__":
    unittest.main()
