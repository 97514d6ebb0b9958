from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ExtractionStage(str, Enum):
    STARTING = "starting"
    VALIDATING = "validating"
    HOLE_IDS = "hole_ids"
    REPEAT_AREAS = "repeat_areas"
    NON_REPEAT_AREAS = "non_repeat_areas"
    COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class ExtractionProgress:
    # current_page/total_pages count positions within the stage, not page numbers.
    stage: ExtractionStage
    message: str
    current_area: str | None = None
    current_page: int | None = None
    total_pages: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "message": self.message,
            "current_area": self.current_area,
            "current_page": self.current_page,
            "total_pages": self.total_pages,
        }


@dataclass(frozen=True, slots=True)
class PageTextData:
    """
    One extracted record: every page that contributed to it plus the value
    sequence for each configured Area name.
    """

    page_numbers: list[int]  # non-empty, strictly increasing
    values: dict[str, list[str]]

    def __post_init__(self) -> None:
        if not self.page_numbers:
            raise ValueError("page_numbers must be non-empty")
        if any(b <= a for a, b in zip(self.page_numbers, self.page_numbers[1:])):
            raise ValueError("page_numbers must be strictly increasing")

    def get(self, area_name: str) -> list[str]:
        return list(self.values.get(area_name, []))

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_numbers": list(self.page_numbers),
            "values": {k: list(v) for k, v in self.values.items()},
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "PageTextData":
        return PageTextData(
            page_numbers=[int(p) for p in (d.get("page_numbers") or [])],
            values={str(k): [str(x) for x in v] for k, v in (d.get("values") or {}).items()},
        )


@dataclass(frozen=True, slots=True)
class ExtractionError:
    code: str
    message: str
    detail: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "detail": self.detail}


@dataclass(frozen=True, slots=True)
class AreaResult:
    """
    Outcome of reading one Area on one page.

    A failed read carries the reason and an empty value list; it never aborts
    the surrounding run.
    """

    area_name: str
    page_num: int
    ok: bool
    values: list[str]
    error: ExtractionError | None = None

    @staticmethod
    def success(*, area_name: str, page_num: int, values: list[str]) -> "AreaResult":
        return AreaResult(area_name=area_name, page_num=page_num, ok=True, values=list(values))

    @staticmethod
    def failure(*, area_name: str, page_num: int, error: ExtractionError) -> "AreaResult":
        return AreaResult(area_name=area_name, page_num=page_num, ok=False, values=[], error=error)


class ExtractionStatus(str, Enum):
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    FATAL = "fatal"


@dataclass(frozen=True, slots=True)
class ExtractionOutcome:
    """
    Result of one orchestrator run.

    Only a COMPLETE outcome carries records; CANCELLED and FATAL never expose a
    partial record list.
    """

    status: ExtractionStatus
    records: list[PageTextData]
    errors: list[ExtractionError]
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == ExtractionStatus.COMPLETE

    @property
    def cancelled(self) -> bool:
        return self.status == ExtractionStatus.CANCELLED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "ok": self.ok,
            "records": [r.to_dict() for r in self.records],
            "errors": [e.to_dict() for e in self.errors],
            "meta": dict(self.meta),
        }
