from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable, Sequence

from contracts.areas import Area


def _area_payload(area: Area) -> dict[str, Any]:
    # Display-only fields (color) do not change extraction output.
    return {
        "id": area.id,
        "name": area.name,
        "order": area.order,
        "rect": None if area.rect is None else area.rect.to_dict(),
        "mandatory": area.mandatory,
        "ocr": area.ocr,
        "repeat_in_pages": area.repeat_in_pages,
        "data_type": None if area.data_type is None else area.data_type.value,
    }


def areas_fingerprint(
    areas: Sequence[Area],
    *,
    source_id: str | None,
    excluded_pages: Iterable[int] = (),
) -> str:
    """
    Deterministic fingerprint, stable for identical:
    (Area configuration + source document identity + excluded page set).

    Used to decide whether a cached extraction output is stale.
    """

    payload = {
        "areas": [_area_payload(a) for a in sorted(areas, key=lambda a: (a.order, a.id))],
        "source": source_id,
        "excluded_pages": sorted(set(int(p) for p in excluded_pages)),
    }
    s = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(s.encode("utf-8")).hexdigest()
