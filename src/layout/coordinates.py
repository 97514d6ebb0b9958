from __future__ import annotations

from contracts.geometry import Rect


def to_document_space(
    rect: Rect,
    *,
    rendered_scale: float = 1.0,
    zoom_scale: float = 1.0,
    viewport_height: float,
) -> Rect:
    """
    Convert a screen rectangle (top-left origin, y down) drawn on a page view
    rendered at `rendered_scale` and zoomed by `zoom_scale` into document space
    (bottom-left origin, y up).
    """

    k = zoom_scale / rendered_scale
    height = rect.height * k
    return Rect(
        x=rect.x * k,
        y=viewport_height - rect.y * k - height,
        width=rect.width * k,
        height=height,
    )


def to_screen_space(
    rect: Rect,
    *,
    rendered_scale: float = 1.0,
    zoom_scale: float = 1.0,
    viewport_height: float,
) -> Rect:
    """Inverse of `to_document_space` for matching parameters."""

    k = rendered_scale / zoom_scale
    return Rect(
        x=rect.x * k,
        y=(viewport_height - rect.y - rect.height) * k,
        width=rect.width * k,
        height=rect.height * k,
    )


def to_raster_box(rect: Rect, *, scale: float) -> tuple[int, int, int, int]:
    """
    Pixel crop box (left, top, right, bottom) of a screen rectangle on a page
    raster rendered at `scale`. Screen space and raster space share the
    top-left origin, so only scaling is needed.
    """

    left = max(0, int(round(rect.x * scale)))
    top = max(0, int(round(rect.y * scale)))
    right = max(left, int(round(rect.x_max * scale)))
    bottom = max(top, int(round(rect.y_max * scale)))
    return left, top, right, bottom
