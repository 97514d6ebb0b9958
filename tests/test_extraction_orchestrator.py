from __future__ import annotations

import unittest

from contracts.areas import Area, DataType
from contracts.extraction import ExtractionProgress, ExtractionStage, ExtractionStatus
from contracts.geometry import Rect
from extraction.area_reader import AreaReader
from extraction.cancellation import DECLINED_CONFIRMATION, CancellationToken
from extraction.config import ExtractionConfig
from extraction.module import run_extraction

from _fakes import BrokenDocument, FakeDocument, FakeOcrFactory, FakeOcrSource, tok

ID_RECT = Rect(0, 0, 200, 50)
Z_RECT = Rect(300, 0, 100, 50)
GEO_RECT = Rect(0, 100, 200, 300)
NSPT_RECT = Rect(300, 100, 100, 300)
OBS_RECT = Rect(0, 420, 200, 50)
NOTES_RECT = Rect(300, 420, 100, 50)


def _areas() -> list[Area]:
    return [
        Area(id="a1", name="Furo", order=1, rect=ID_RECT, data_type=DataType.HOLE_ID),
        Area(id="a2", name="Cota", order=2, rect=Z_RECT, repeat_in_pages=True, data_type=DataType.Z),
        Area(id="a3", name="Geologia", order=3, rect=GEO_RECT, data_type=DataType.GEOLOGY),
        Area(id="a4", name="NSPT", order=4, rect=NSPT_RECT, data_type=DataType.NSPT),
    ]


def _borehole_document() -> FakeDocument:
    # Screen rects above map to document space with y = 800 - top - height.
    return FakeDocument(
        {
            1: [tok("AREIA", 10, 650)],
            2: [],
            3: [
                tok("FD-01", 10, 770),
                tok("12,5", 310, 770),
                tok("AREIA FINA", 10, 650),
                tok("SILTE ARGILOSO", 10, 600),
                tok("10", 310, 650, width=10),
                tok("30", 310, 642, width=10),
            ],
            4: [tok("ROCHA", 10, 650)],
            5: [
                tok("FD-01", 10, 770),
                tok("99", 310, 770),
                tok("silte  argiloso", 10, 690),
                tok("ROCHA", 10, 640),
                tok("7", 310, 650, width=10),
            ],
        }
    )


class TestExtractionGrouping(unittest.TestCase):
    def test_pages_sharing_an_identifier_form_one_record(self) -> None:
        factory = FakeOcrFactory(FakeOcrSource())
        outcome = run_extraction(areas=_areas(), document=_borehole_document(), ocr_factory=factory)

        self.assertEqual(outcome.status, ExtractionStatus.COMPLETE)
        self.assertEqual(len(outcome.records), 1)
        record = outcome.records[0]
        self.assertEqual(record.page_numbers, [3, 5])
        self.assertEqual(record.get("Furo"), ["FD-01"])
        self.assertEqual(record.get("Cota"), ["12.5"])
        self.assertEqual(record.get("Geologia"), ["AREIA FINA", "SILTE ARGILOSO", "ROCHA"])
        self.assertEqual(record.get("NSPT"), ["10/30", "7"])
        self.assertEqual(outcome.meta["pages_without_identifier"], [1, 2, 4])
        self.assertEqual(outcome.meta["area_failures"], [])
        # No OCR area configured: the engine is never acquired.
        self.assertEqual(factory.opened, 0)

    def test_groups_follow_first_seen_order(self) -> None:
        document = FakeDocument(
            {
                1: [tok("FD-02", 10, 770)],
                2: [tok("FD-01", 10, 770)],
                3: [tok("FD-02", 10, 770)],
            }
        )
        outcome = run_extraction(areas=_areas()[:1], document=document)
        self.assertEqual([r.page_numbers for r in outcome.records], [[1, 3], [2]])
        self.assertEqual([r.get("Furo") for r in outcome.records], [["FD-02"], ["FD-01"]])

    def test_without_identifier_every_page_is_a_record(self) -> None:
        areas = [Area(id="g", name="Geologia", order=1, rect=GEO_RECT, data_type=DataType.GEOLOGY)]
        document = FakeDocument({1: [tok("AREIA", 10, 650)], 2: [tok("ROCHA", 10, 650)]})
        outcome = run_extraction(areas=areas, document=document)
        self.assertEqual([r.page_numbers for r in outcome.records], [[1], [2]])
        self.assertEqual([r.get("Geologia") for r in outcome.records], [["AREIA"], ["ROCHA"]])

    def test_excluded_pages_are_skipped(self) -> None:
        outcome = run_extraction(areas=_areas(), document=_borehole_document(), excluded_pages=[5])
        self.assertEqual([r.page_numbers for r in outcome.records], [[3]])
        self.assertEqual(outcome.records[0].get("Geologia"), ["AREIA FINA", "SILTE ARGILOSO"])

    def test_pages_missing_mandatory_content_are_dropped(self) -> None:
        areas = [
            Area(id="a1", name="Furo", order=1, rect=ID_RECT, data_type=DataType.HOLE_ID),
            Area(id="a3", name="Geologia", order=2, rect=GEO_RECT, mandatory=True, data_type=DataType.GEOLOGY),
        ]
        document = FakeDocument(
            {
                1: [tok("FD-01", 10, 770)],
                2: [tok("FD-01", 10, 770), tok("AREIA", 10, 650)],
            }
        )
        outcome = run_extraction(areas=areas, document=document)
        self.assertEqual(outcome.meta["valid_pages"], [2])
        self.assertEqual([r.page_numbers for r in outcome.records], [[2]])

    def test_progress_walks_the_stages_in_order(self) -> None:
        events: list[ExtractionProgress] = []
        run_extraction(areas=_areas(), document=_borehole_document(), on_progress=events.append)

        stages: list[ExtractionStage] = []
        for e in events:
            if not stages or stages[-1] != e.stage:
                stages.append(e.stage)
        self.assertEqual(
            stages,
            [
                ExtractionStage.STARTING,
                ExtractionStage.VALIDATING,
                ExtractionStage.HOLE_IDS,
                ExtractionStage.REPEAT_AREAS,
                ExtractionStage.NON_REPEAT_AREAS,
                ExtractionStage.COMPLETE,
            ],
        )

    def test_progress_counters_stay_within_their_totals(self) -> None:
        document = FakeDocument(
            {
                1: [tok("FD-02", 10, 770), tok("3,0", 310, 770)],
                2: [tok("FD-01", 10, 770), tok("4,5", 310, 770)],
                3: [tok("FD-02", 10, 770)],
            }
        )
        events: list[ExtractionProgress] = []
        run_extraction(areas=_areas(), document=document, on_progress=events.append)

        def counters(stage: ExtractionStage) -> list[tuple[int | None, int | None]]:
            return [(e.current_page, e.total_pages) for e in events if e.stage == stage and e.current_area]

        # One repeat area per group, counted by group.
        self.assertEqual(counters(ExtractionStage.REPEAT_AREAS), [(1, 2), (2, 2)])
        # Two per-page areas, counted by page within each group.
        self.assertEqual(
            counters(ExtractionStage.NON_REPEAT_AREAS),
            [(1, 2), (1, 2), (2, 2), (2, 2), (1, 1), (1, 1)],
        )
        for e in events:
            if e.current_page is not None:
                self.assertLessEqual(e.current_page, e.total_pages)


class TestExtractionOutcomes(unittest.TestCase):
    def test_missing_document_is_fatal(self) -> None:
        outcome = run_extraction(areas=_areas(), document=None)
        self.assertEqual(outcome.status, ExtractionStatus.FATAL)
        self.assertEqual(outcome.errors[0].code, "EXTRACT_NO_DOCUMENT")
        self.assertEqual(outcome.records, [])

    def test_unreadable_document_is_fatal(self) -> None:
        outcome = run_extraction(areas=_areas(), document=BrokenDocument({}))
        self.assertEqual(outcome.status, ExtractionStatus.FATAL)
        self.assertEqual(outcome.errors[0].code, "EXTRACT_DOCUMENT_UNREADABLE")

    def test_declined_confirmation_is_a_cancellation(self) -> None:
        areas = _areas() + [Area(id="a9", name="Sem coordenadas", order=9)]
        asked: list[str] = []

        def decline(message: str) -> bool:
            asked.append(message)
            return False

        outcome = run_extraction(areas=areas, document=_borehole_document(), confirm=decline)
        self.assertEqual(outcome.status, ExtractionStatus.CANCELLED)
        self.assertTrue(outcome.cancelled)
        self.assertEqual(outcome.errors[0].code, DECLINED_CONFIRMATION)
        self.assertEqual(outcome.records, [])
        self.assertEqual(len(asked), 1)
        self.assertIn("Sem coordenadas", asked[0])

    def test_accepted_confirmation_skips_areas_without_rect(self) -> None:
        areas = _areas() + [Area(id="a9", name="Sem coordenadas", order=9)]
        outcome = run_extraction(areas=areas, document=_borehole_document(), confirm=lambda _m: True)
        self.assertEqual(outcome.status, ExtractionStatus.COMPLETE)
        self.assertNotIn("Sem coordenadas", outcome.records[0].values)

    def test_repeat_areas_without_identifier_ask_for_confirmation(self) -> None:
        areas = _areas()[1:]
        asked: list[str] = []
        run_extraction(areas=areas, document=_borehole_document(), confirm=lambda m: asked.append(m) is None)
        self.assertEqual(len(asked), 1)


class TestExtractionCancellation(unittest.TestCase):
    def _ocr_areas(self) -> list[Area]:
        return _areas() + [Area(id="a5", name="Obs", order=5, rect=OBS_RECT, ocr=True)]

    def test_cancel_mid_run_returns_no_records_and_releases_ocr(self) -> None:
        token = CancellationToken()
        factory = FakeOcrFactory(FakeOcrSource())
        events: list[ExtractionProgress] = []

        def on_progress(event: ExtractionProgress) -> None:
            events.append(event)
            if event.stage == ExtractionStage.NON_REPEAT_AREAS:
                token.cancel()

        outcome = run_extraction(
            areas=self._ocr_areas(),
            document=_borehole_document(),
            cancel=token,
            on_progress=on_progress,
            ocr_factory=factory,
        )
        self.assertEqual(outcome.status, ExtractionStatus.CANCELLED)
        self.assertEqual(outcome.records, [])
        self.assertEqual((factory.opened, factory.closed), (1, 1))
        # The page-5 checkpoint observed the cancel; page 5 was never read.
        self.assertFalse(
            [e for e in events if e.stage == ExtractionStage.NON_REPEAT_AREAS and e.message.endswith("page 5")]
        )
        self.assertNotIn(ExtractionStage.COMPLETE, [e.stage for e in events])

    def test_cancel_before_start(self) -> None:
        token = CancellationToken()
        token.cancel("user closed the dialog")
        factory = FakeOcrFactory(FakeOcrSource())
        outcome = run_extraction(
            areas=self._ocr_areas(), document=_borehole_document(), cancel=token, ocr_factory=factory
        )
        self.assertTrue(outcome.cancelled)
        self.assertEqual(outcome.errors[0].message, "user closed the dialog")
        self.assertEqual((factory.opened, factory.closed), (1, 1))


class TestExtractionOcrAreas(unittest.TestCase):
    def test_failing_area_does_not_affect_the_others(self) -> None:
        areas = _areas() + [
            Area(id="a5", name="Obs", order=5, rect=OBS_RECT, ocr=True),
            Area(id="a6", name="Notas", order=6, rect=NOTES_RECT, ocr=True),
        ]
        source = FakeOcrSource(failing={OBS_RECT}, raising={NOTES_RECT})
        outcome = run_extraction(areas=areas, document=_borehole_document(), ocr_factory=FakeOcrFactory(source))

        self.assertEqual(outcome.status, ExtractionStatus.COMPLETE)
        record = outcome.records[0]
        self.assertEqual(record.get("Obs"), [])
        self.assertEqual(record.get("Notas"), [])
        self.assertEqual(record.get("Geologia"), ["AREIA FINA", "SILTE ARGILOSO", "ROCHA"])
        self.assertEqual(record.get("NSPT"), ["10/30", "7"])
        self.assertEqual(record.get("Cota"), ["12.5"])

        failures = outcome.meta["area_failures"]
        self.assertEqual(
            sorted((f["area"], f["page_num"], f["code"]) for f in failures),
            [
                ("Notas", 3, "AREA_READ_FAILED"),
                ("Notas", 5, "AREA_READ_FAILED"),
                ("Obs", 3, "OCR_BACKEND_ERROR"),
                ("Obs", 5, "OCR_BACKEND_ERROR"),
            ],
        )

    def test_ocr_values_and_raster_reuse(self) -> None:
        areas = _areas() + [
            Area(id="a5", name="Data", order=5, rect=OBS_RECT, ocr=True, repeat_in_pages=True, data_type=DataType.DATE),
            Area(id="a6", name="NSPT OCR", order=6, rect=NOTES_RECT, ocr=True, data_type=DataType.NSPT),
        ]
        source = FakeOcrSource(
            {
                (OBS_RECT, 3): ["12/03/2020"],
                (NOTES_RECT, 3): ["10/30 12"],
                (NOTES_RECT, 5): ["x -"],
            }
        )
        document = _borehole_document()
        factory = FakeOcrFactory(source)
        outcome = run_extraction(areas=areas, document=document, ocr_factory=factory)

        record = outcome.records[0]
        self.assertEqual(record.get("Data"), ["12/03/2020"])
        self.assertEqual(record.get("NSPT OCR"), ["10/30", "12", "-"])
        self.assertEqual(document.render_calls, [3, 5])
        self.assertEqual((factory.opened, factory.closed), (1, 1))


class TestAreaReader(unittest.TestCase):
    def _reader(self) -> AreaReader:
        return AreaReader(document=_borehole_document(), config=ExtractionConfig(), ocr_source=None)

    def test_ocr_area_without_an_engine_is_a_read_failure(self) -> None:
        reader = self._reader()
        area = Area(id="a5", name="Obs", order=5, rect=OBS_RECT, ocr=True)
        for result in (reader.read(area, 3), reader.read_text(area, 3)):
            self.assertFalse(result.ok)
            self.assertEqual(result.values, [])
            self.assertIsNotNone(result.error)
            self.assertEqual(result.error.code, "AREA_OCR_UNAVAILABLE")

    def test_area_without_rect_reads_nothing(self) -> None:
        reader = self._reader()
        area = Area(id="a9", name="Sem coordenadas", order=9)
        self.assertEqual((reader.read(area, 3).ok, reader.read(area, 3).values), (True, []))
        self.assertEqual((reader.read_text(area, 3).ok, reader.read_text(area, 3).values), (True, []))

    def test_text_layer_reads(self) -> None:
        reader = self._reader()
        geology = Area(id="a3", name="Geologia", order=3, rect=GEO_RECT, data_type=DataType.GEOLOGY)
        hole = Area(id="a1", name="Furo", order=1, rect=ID_RECT, data_type=DataType.HOLE_ID)
        self.assertEqual(reader.read(geology, 3).values, ["AREIA FINA", "SILTE ARGILOSO"])
        self.assertEqual(reader.read_text(hole, 3).values, ["FD-01"])
        self.assertEqual(reader.read_text(hole, 4).values, [])


if __name__ == "__main__":
    unittest.main()
