from __future__ import annotations

from typing import Iterable

from contracts.geometry import HorizontalLine, PathOp, PathOpKind, Rect

from .config import LayoutConfig

_DEFAULT_CONFIG = LayoutConfig()


def find_horizontal_lines(ops: Iterable[PathOp], *, max_dy: float = _DEFAULT_CONFIG.horizontal_max_dy) -> list[HorizontalLine]:
    """
    Extract horizontal ruling segments from a page's path instructions.

    Only straight segments count: a LINE from the current point, or a CLOSE
    back to the subpath start. Curves move the current point without emitting
    anything. Ops without a current point (a LINE before any MOVE) are skipped.
    """

    lines: list[HorizontalLine] = []
    current: tuple[float, float] | None = None
    start: tuple[float, float] | None = None

    def _emit(a: tuple[float, float], b: tuple[float, float]) -> None:
        (x1, y1), (x2, y2) = a, b
        if abs(y1 - y2) < max_dy:
            lines.append(HorizontalLine(x1=min(x1, x2), x2=max(x1, x2), y=y1))

    for op in ops:
        if op.kind == PathOpKind.MOVE:
            current = (op.x, op.y)
            start = current
        elif op.kind == PathOpKind.LINE:
            point = (op.x, op.y)
            if current is not None:
                _emit(current, point)
            else:
                start = point
            current = point
        elif op.kind == PathOpKind.CURVE:
            current = (op.x, op.y)
        elif op.kind == PathOpKind.CLOSE:
            if current is not None and start is not None and current != start:
                _emit(current, start)
            current = start

    return lines


def has_horizontal_line(
    rect: Rect,
    lines: Iterable[HorizontalLine],
    *,
    short_only: bool = False,
    config: LayoutConfig = _DEFAULT_CONFIG,
) -> bool:
    """
    True if a ruling line crosses `rect` (document space).

    With `short_only`, only tick-like lines (length <= short_line_max_length)
    qualify. Otherwise the line must be long enough to read as a row separator.
    """

    if config.long_line_min_length is not None:
        long_min = config.long_line_min_length
    else:
        long_min = rect.y / config.long_line_y_divisor

    for line in lines:
        if line.x1 > rect.x_max or line.x2 < rect.x:
            continue
        if line.y < rect.y or line.y > rect.y_max:
            continue
        length = line.length()
        if short_only:
            if length <= config.short_line_max_length:
                return True
        elif length >= long_min:
            return True
    return False
