from __future__ import annotations

from enum import Enum
from functools import cmp_to_key
from typing import Iterable, Sequence

from contracts.geometry import HorizontalLine, Rect, TextToken

from .blow_counts import is_number
from .config import LayoutConfig
from .horizontal_lines import has_horizontal_line

_DEFAULT_CONFIG = LayoutConfig()


class RowState(str, Enum):
    IDLE = "idle"
    BUFFERING_WRAP = "buffering_wrap"  # pending tokens of a wrapped row, joined with " "
    BUFFERING_SPLIT_VALUE = "buffering_split_value"  # first half of a split number, joined with "/"


def sort_reading_order(tokens: Iterable[TextToken], *, config: LayoutConfig = _DEFAULT_CONFIG) -> list[TextToken]:
    """
    Top-to-bottom (descending document y), left-to-right within a visual row.

    Two tokens share a row when their y difference is at most `same_row_k`
    of their average height.
    """

    def _cmp(a: TextToken, b: TextToken) -> float:
        y_diff = b.y - a.y
        threshold = (a.height + b.height) / 2.0 * config.same_row_k
        if abs(y_diff) <= threshold:
            return a.x - b.x
        return y_diff

    return sorted(tokens, key=cmp_to_key(_cmp))


def probe_to_next(token: TextToken, next_token: TextToken, *, config: LayoutConfig = _DEFAULT_CONFIG) -> Rect:
    """Strip between `token` and `next_token` over the central part of the token width."""

    margin = token.width * config.probe_margin_fraction
    gap = abs(token.y - next_token.y)
    return Rect(
        x=token.x + margin,
        y=token.y - token.height / 2.0,
        width=max(0.0, token.width - 2 * margin),
        height=max(0.0, min(gap, token.height / 2.0)),
    )


def probe_below(token: TextToken, *, config: LayoutConfig = _DEFAULT_CONFIG) -> Rect:
    """One font height directly beneath `token`, central part of its width."""

    margin = token.width * config.probe_margin_fraction
    return Rect(
        x=token.x + margin,
        y=token.y - token.height,
        width=max(0.0, token.width - 2 * margin),
        height=max(0.0, token.height),
    )


class RowReconstructor:
    """
    Finite state machine that turns reading-ordered tokens into logical rows.

    Feed each non-blank token together with the next non-blank token (None for
    the last one), then call `finish()`.
    """

    def __init__(
        self,
        lines: Sequence[HorizontalLine],
        *,
        config: LayoutConfig = _DEFAULT_CONFIG,
    ) -> None:
        self._lines = list(lines)
        self._config = config
        self._buffer: list[str] = []
        self.state = RowState.IDLE
        self.rows: list[str] = []

    def _flush(self, sep: str) -> None:
        if self._buffer:
            self.rows.append(sep.join(self._buffer))
        self._buffer = []
        self.state = RowState.IDLE

    def _starts_split_value(self, token: TextToken, next_token: TextToken, within_gap: bool) -> bool:
        if self.state != RowState.IDLE or not within_gap:
            return False
        if not (is_number(token.text) and is_number(next_token.text)):
            return False
        return has_horizontal_line(
            probe_below(token, config=self._config), self._lines, short_only=True, config=self._config
        )

    def feed(self, token: TextToken, next_token: TextToken | None) -> None:
        text = token.text.strip()
        if not text:
            return

        if self.state == RowState.BUFFERING_SPLIT_VALUE:
            self._buffer.append(text)
            self._flush("/")
            return

        if text == "-":
            # Explicit "no data" marker: never merged with neighbours.
            self._flush(" ")
            self.rows.append(text)
            return

        if next_token is None:
            self._buffer.append(text)
            self._flush(" ")
            return

        gap = abs(token.y - next_token.y)
        within_gap = gap <= token.height * self._config.wrap_gap_k
        line_to_next = has_horizontal_line(
            probe_to_next(token, next_token, config=self._config), self._lines, config=self._config
        )

        if within_gap and not line_to_next:
            self._buffer.append(text)
            self.state = RowState.BUFFERING_WRAP
        elif self._starts_split_value(token, next_token, within_gap):
            self._buffer.append(text)
            self.state = RowState.BUFFERING_SPLIT_VALUE
        elif self._buffer:
            self._buffer.append(text)
            self._flush(" ")
        else:
            self.rows.append(text)

    def finish(self) -> list[str]:
        sep = "/" if self.state == RowState.BUFFERING_SPLIT_VALUE else " "
        self._flush(sep)
        return list(self.rows)


def reconstruct_rows(
    tokens: Iterable[TextToken],
    lines: Sequence[HorizontalLine] = (),
    *,
    config: LayoutConfig = _DEFAULT_CONFIG,
) -> list[str]:
    """
    Reassemble region tokens into ordered logical row strings.

    Every non-blank token text lands in exactly one row; rows follow visual
    top-to-bottom, left-to-right order.
    """

    ordered = [t for t in sort_reading_order(tokens, config=config) if not t.is_blank()]
    machine = RowReconstructor(lines, config=config)
    for i, tok in enumerate(ordered):
        machine.feed(tok, ordered[i + 1] if i + 1 < len(ordered) else None)
    return machine.finish()
