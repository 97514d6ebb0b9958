from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LayoutConfig:
    """
    Geometric heuristics for region filtering and row reconstruction.

    All distances are in document-space units (PDF points at scale 1).
    Multipliers ending in `_k` scale the current token's font height.
    """

    # Region filter slack around the user rectangle.
    selection_tolerance: float = 3.0

    # Two tokens closer than wrap_gap_k * height may belong to one wrapped row.
    wrap_gap_k: float = 1.5
    # Tokens with dy <= same_row_k * avg height are ordered left-to-right.
    same_row_k: float = 0.5
    # Probe rectangles skip this fraction of the token width on each side.
    probe_margin_fraction: float = 0.2

    # Ruling lines at most this long mark split numeric values.
    short_line_max_length: float = 15.0
    # Long-line rule: length >= rect.y / long_line_y_divisor, unless
    # long_line_min_length is set, which replaces it with a fixed length.
    long_line_y_divisor: float = 6.0
    long_line_min_length: float | None = None

    # Path segments with |y1 - y2| below this are horizontal.
    horizontal_max_dy: float = 2.0

    # Blow-count adaptive threshold.
    blow_count_height_k: float = 1.2
    blow_count_uniform_k: float = 1.2
    blow_count_gap_k: float = 1.1

    def validate(self) -> None:
        if self.selection_tolerance < 0:
            raise ValueError("selection_tolerance must be >= 0")
        if self.wrap_gap_k <= 0:
            raise ValueError("wrap_gap_k must be > 0")
        if self.same_row_k < 0:
            raise ValueError("same_row_k must be >= 0")
        if not (0.0 <= self.probe_margin_fraction < 0.5):
            raise ValueError("probe_margin_fraction must be within [0, 0.5)")
        if self.short_line_max_length < 0:
            raise ValueError("short_line_max_length must be >= 0")
        if self.long_line_y_divisor <= 0:
            raise ValueError("long_line_y_divisor must be > 0")
        if self.long_line_min_length is not None and self.long_line_min_length < 0:
            raise ValueError("long_line_min_length must be >= 0")
        if self.horizontal_max_dy <= 0:
            raise ValueError("horizontal_max_dy must be > 0")
        if self.blow_count_height_k <= 0 or self.blow_count_gap_k <= 0:
            raise ValueError("blow count multipliers must be > 0")
        if self.blow_count_uniform_k < 0:
            raise ValueError("blow_count_uniform_k must be >= 0")

    def __post_init__(self) -> None:
        self.validate()
