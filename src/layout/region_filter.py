from __future__ import annotations

from typing import Iterable

from contracts.geometry import Rect, TextToken

DEFAULT_SELECTION_TOLERANCE = 3.0


def token_in_rect(token: TextToken, rect: Rect, *, tolerance: float = DEFAULT_SELECTION_TOLERANCE) -> bool:
    return (
        token.x >= rect.x - tolerance
        and token.x_max <= rect.x_max + tolerance
        and token.y >= rect.y - tolerance
        and token.y_max <= rect.y_max + tolerance
    )


def select_tokens(
    tokens: Iterable[TextToken],
    rect: Rect,
    *,
    tolerance: float = DEFAULT_SELECTION_TOLERANCE,
) -> list[TextToken]:
    """
    Tokens whose bounding box lies inside `rect` (document space), allowing
    `tolerance` units of slack on every side. Input order is preserved.
    """

    return [t for t in tokens if token_in_rect(t, rect, tolerance=tolerance)]
