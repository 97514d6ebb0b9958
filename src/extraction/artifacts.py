from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from contracts.areas import Area
from contracts.extraction import ExtractionOutcome


def serialize_outcome(outcome: ExtractionOutcome) -> str:
    """
    Stable JSON serialization for audit artifacts.
    """

    payload: dict[str, Any] = outcome.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_outcome_json(*, outcome: ExtractionOutcome, out_file: Path) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(serialize_outcome(outcome), encoding="utf-8")


def load_areas_json(areas_file: Path) -> list[Area]:
    """
    Read Area definitions from either a bare JSON list of Area dicts or a
    preset object `{"name": ..., "areas": [...]}`.
    """

    raw = json.loads(areas_file.read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("areas")
    if not isinstance(raw, list):
        raise ValueError(f"{areas_file}: expected a list of areas or an object with an 'areas' list")
    return [Area.from_dict(d) for d in raw]
