from __future__ import annotations

import re
from typing import Iterable

from contracts.geometry import TextToken

from .config import LayoutConfig

_DEFAULT_CONFIG = LayoutConfig()

# ">30", "PM", "PH", "P", "12", each optionally "/15" and trailing "*"; or a lone "-".
BLOW_COUNT_RE = re.compile(r"^(>\d+|PM|PH|P|\d+)(/\d+)?(\*+)?$|^-$")
NUMBER_RE = re.compile(r"^\d+(\.\d+)?$")


def is_number(text: str) -> bool:
    return NUMBER_RE.match(text.strip()) is not None


def is_blow_count(text: str) -> bool:
    return BLOW_COUNT_RE.match(text.strip()) is not None


def blow_count_threshold(numeric: list[TextToken], *, config: LayoutConfig = _DEFAULT_CONFIG) -> float:
    """
    Largest vertical gap at which two consecutive tokens are one split value.

    With few numbers the font height is the only scale available. With four or
    more, uniform spacing means nothing is split (threshold 0); otherwise the
    smallest gap is taken to be the intra-value spacing.
    """

    gaps = sorted(abs(a.y - b.y) for a, b in zip(numeric, numeric[1:]))
    if len(numeric) < 4:
        return numeric[0].height * config.blow_count_height_k
    min_gap, max_gap = gaps[0], gaps[-1]
    if max_gap - min_gap <= min_gap * config.blow_count_uniform_k:
        return 0.0
    return min_gap * config.blow_count_gap_k


def reconstruct_blow_counts(tokens: Iterable[TextToken], *, config: LayoutConfig = _DEFAULT_CONFIG) -> list[str]:
    """
    Blow-count values of a region, top to bottom, with vertically split
    measurements ("10" above "30") rejoined as "10/30".
    """

    # Stable sort keeps the caller's order for tokens on the same baseline.
    ordered = sorted(tokens, key=lambda t: -t.y)
    valid = [t for t in ordered if is_blow_count(t.text)]
    if not valid:
        return []

    numeric = [t for t in valid if is_number(t.text)]
    if len(numeric) < 2:
        return [t.text.strip() for t in valid]

    threshold = blow_count_threshold(numeric, config=config)

    values: list[str] = []
    pending: list[str] = []
    for i, tok in enumerate(valid):
        text = tok.text.strip()
        if pending:
            pending.append(text)
            values.append("/".join(pending))
            pending = []
            continue
        if text == "-":
            values.append(text)
            continue
        if i + 1 < len(valid) and abs(tok.y - valid[i + 1].y) <= threshold:
            pending.append(text)
            continue
        values.append(text)

    if pending:
        values.append("/".join(pending))
    return values
