from __future__ import annotations

import logging
from contextlib import AbstractContextManager, ExitStack
from typing import Any, Callable, Iterable, Sequence

from contracts.areas import Area
from contracts.extraction import (
    AreaResult,
    ExtractionError,
    ExtractionOutcome,
    ExtractionProgress,
    ExtractionStage,
    ExtractionStatus,
    PageTextData,
)
from ocr.contracts import OcrConfig
from ocr.module import OcrLineSource, open_ocr_line_source
from pdf_document.engines.base import DocumentBackend

from .area_reader import AreaReader
from .cancellation import DECLINED_CONFIRMATION, CancellationToken, ExtractionCancelled
from .config import ExtractionConfig
from .formatting import format_values, merge_page_values

logger = logging.getLogger(__name__)

ProgressSink = Callable[[ExtractionProgress], None]
ConfirmCallback = Callable[[str], bool]
OcrSourceFactory = Callable[[DocumentBackend, OcrConfig], AbstractContextManager[OcrLineSource]]


class _Run:
    """Mutable state of one orchestrator run."""

    def __init__(self, *, reader: AreaReader, cancel: CancellationToken, on_progress: ProgressSink | None) -> None:
        self.reader = reader
        self.cancel = cancel
        self.on_progress = on_progress
        self.area_failures: list[dict[str, Any]] = []

    def emit(
        self,
        stage: ExtractionStage,
        message: str,
        *,
        current_area: str | None = None,
        current_page: int | None = None,
        total_pages: int | None = None,
    ) -> None:
        if self.on_progress is None:
            return
        self.on_progress(
            ExtractionProgress(
                stage=stage,
                message=message,
                current_area=current_area,
                current_page=current_page,
                total_pages=total_pages,
            )
        )

    def record(self, result: AreaResult) -> list[str]:
        error = result.error
        if error is not None:
            self.area_failures.append(
                {
                    "area": result.area_name,
                    "page_num": result.page_num,
                    "code": error.code,
                    "message": error.message,
                }
            )
        return result.values


def _identifier_area(areas: Sequence[Area]) -> Area | None:
    for area in areas:
        if area.is_identifier and area.rect is not None:
            return area
    return None


def _preflight_messages(areas: Sequence[Area], identifier: Area | None) -> list[str]:
    messages: list[str] = []
    missing = [a.name for a in areas if a.rect is None]
    if missing:
        messages.append(
            f"{len(missing)} area(s) have no coordinates and will be skipped: {', '.join(missing)}. Continue?"
        )
    repeat = [a.name for a in areas if a.repeat_in_pages and a.rect is not None and not a.is_identifier]
    if repeat and identifier is None:
        messages.append(
            "Areas marked to repeat across pages need a hole_id area to group pages; "
            "without one every page is its own record. Continue?"
        )
    return messages


def _fatal(code: str, message: str, detail: dict[str, Any] | None = None, **meta: Any) -> ExtractionOutcome:
    return ExtractionOutcome(
        status=ExtractionStatus.FATAL,
        records=[],
        errors=[ExtractionError(code=code, message=message, detail=detail)],
        meta=dict(meta),
    )


def _cancelled(exc: ExtractionCancelled, **meta: Any) -> ExtractionOutcome:
    return ExtractionOutcome(
        status=ExtractionStatus.CANCELLED,
        records=[],
        errors=[ExtractionError(code=exc.code, message=exc.reason)],
        meta=dict(meta),
    )


def _validate_pages(run: _Run, pages: list[int], mandatory: list[Area]) -> list[int]:
    valid: list[int] = []
    for i, page_num in enumerate(pages, start=1):
        run.cancel.raise_if_cancelled()
        run.emit(
            ExtractionStage.VALIDATING,
            f"Validating page {page_num}",
            current_page=i,
            total_pages=len(pages),
        )
        ok = True
        for area in mandatory:
            if not run.record(run.reader.read_text(area, page_num)):
                logger.debug("page %d: mandatory area %r is empty", page_num, area.name)
                ok = False
                break
        if ok:
            valid.append(page_num)
    return valid


def _group_pages(run: _Run, pages: list[int], identifier: Area | None) -> tuple[dict[str, list[int]], list[int]]:
    groups: dict[str, list[int]] = {}
    without_id: list[int] = []
    if identifier is None:
        for page_num in pages:
            groups[f"page-{page_num}"] = [page_num]
        return groups, without_id

    for i, page_num in enumerate(pages, start=1):
        run.cancel.raise_if_cancelled()
        run.emit(
            ExtractionStage.HOLE_IDS,
            f"Reading identifier on page {page_num}",
            current_area=identifier.name,
            current_page=i,
            total_pages=len(pages),
        )
        values = run.record(run.reader.read_text(identifier, page_num))
        hole_id = values[0] if values else ""
        if not hole_id:
            without_id.append(page_num)
            continue
        groups.setdefault(hole_id, []).append(page_num)
    return groups, without_id


def run_extraction(
    *,
    areas: Sequence[Area],
    document: DocumentBackend | None,
    excluded_pages: Iterable[int] = (),
    config: ExtractionConfig | None = None,
    cancel: CancellationToken | None = None,
    on_progress: ProgressSink | None = None,
    confirm: ConfirmCallback | None = None,
    ocr_factory: OcrSourceFactory = open_ocr_line_source,
) -> ExtractionOutcome:
    """
    Extract one record per identifier group from `document`.

    Stages run in order: validating (drop pages missing mandatory content),
    hole_ids (group pages by identifier value), repeat_areas (read once from
    each group's first page) and non_repeat_areas (accumulate over every page
    of the group).

    Never raises for per-area failures; those are logged and listed in
    `meta["area_failures"]`. A cancelled run returns no records.
    """

    cfg = config or ExtractionConfig()
    token = cancel or CancellationToken()
    excluded = set(int(p) for p in excluded_pages)
    ordered_areas = sorted(areas, key=lambda a: (a.order, a.id))

    if document is None:
        return _fatal("EXTRACT_NO_DOCUMENT", "no document loaded")

    identifier = _identifier_area(ordered_areas)
    if confirm is not None:
        for message in _preflight_messages(ordered_areas, identifier):
            if not confirm(message):
                logger.info("extraction declined at confirmation: %s", message)
                return _cancelled(ExtractionCancelled("declined confirmation", code=DECLINED_CONFIRMATION))

    try:
        page_count = document.page_count()
    except Exception as e:
        logger.error("cannot read page count: %r", e)
        return _fatal("EXTRACT_DOCUMENT_UNREADABLE", "failed to read page count", {"error": repr(e)})

    usable = [a for a in ordered_areas if a.rect is not None]
    pages = [p for p in range(1, page_count + 1) if p not in excluded]
    meta: dict[str, Any] = {
        "backend": document.backend_id(),
        "page_count": page_count,
        "excluded_pages": sorted(excluded),
        "identifier_area": None if identifier is None else identifier.name,
    }

    try:
        with ExitStack() as stack:
            ocr_source: OcrLineSource | None = None
            if any(a.ocr for a in usable):
                ocr_source = stack.enter_context(ocr_factory(document, cfg.ocr))

            run = _Run(
                reader=AreaReader(document=document, config=cfg, ocr_source=ocr_source),
                cancel=token,
                on_progress=on_progress,
            )
            meta["area_failures"] = run.area_failures

            run.emit(ExtractionStage.STARTING, "Starting extraction", total_pages=len(pages))
            logger.info("extraction started: %d pages, %d areas", len(pages), len(usable))

            mandatory = [a for a in usable if a.mandatory]
            logger.info("stage validating: %d mandatory areas", len(mandatory))
            valid_pages = _validate_pages(run, pages, mandatory)
            meta["valid_pages"] = list(valid_pages)

            logger.info("stage hole_ids: %d valid pages", len(valid_pages))
            groups, without_id = _group_pages(run, valid_pages, identifier)
            meta["pages_without_identifier"] = without_id
            meta["groups"] = len(groups)

            repeat_areas = [a for a in usable if a.repeat_in_pages and not a.is_identifier]
            per_page_areas = [a for a in usable if not a.repeat_in_pages and not a.is_identifier]

            records: list[PageTextData] = []
            group_values: list[dict[str, list[str]]] = []
            for hole_id in groups:
                values: dict[str, list[str]] = {}
                if identifier is not None:
                    values[identifier.name] = [hole_id]
                group_values.append(values)

            logger.info("stage repeat_areas: %d areas", len(repeat_areas))
            for i, (group_pages, values) in enumerate(zip(groups.values(), group_values), start=1):
                token.raise_if_cancelled()
                first_page = group_pages[0]
                for area in repeat_areas:
                    run.emit(
                        ExtractionStage.REPEAT_AREAS,
                        f"Reading {area.name} for group {i}",
                        current_area=area.name,
                        current_page=i,
                        total_pages=len(groups),
                    )
                    raw = run.record(run.reader.read(area, first_page))
                    values[area.name] = format_values(raw, area.data_type)

            logger.info("stage non_repeat_areas: %d areas", len(per_page_areas))
            for group_pages, values in zip(groups.values(), group_values):
                for area in per_page_areas:
                    values.setdefault(area.name, [])
                for j, page_num in enumerate(group_pages, start=1):
                    token.raise_if_cancelled()
                    for area in per_page_areas:
                        run.emit(
                            ExtractionStage.NON_REPEAT_AREAS,
                            f"Reading {area.name} on page {page_num}",
                            current_area=area.name,
                            current_page=j,
                            total_pages=len(group_pages),
                        )
                        raw = run.record(run.reader.read(area, page_num))
                        new = format_values(raw, area.data_type)
                        values[area.name] = merge_page_values(values[area.name], new, area.data_type)
                records.append(PageTextData(page_numbers=list(group_pages), values=values))

            run.emit(ExtractionStage.COMPLETE, f"Extracted {len(records)} records")
            logger.info(
                "extraction complete: %d records, %d area failures", len(records), len(run.area_failures)
            )
    except ExtractionCancelled as e:
        logger.info("extraction cancelled: %s", e.reason)
        return _cancelled(e, **meta)

    return ExtractionOutcome(status=ExtractionStatus.COMPLETE, records=records, errors=[], meta=meta)
