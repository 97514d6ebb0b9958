from __future__ import annotations


def parse_page_selection(selection: str | None, *, page_count: int | None = None) -> set[int]:
    """
    Parse "1,3-5" into a set of unique 1-indexed page numbers.
    None or blank => empty set.

    When `page_count` is given, every page must fall within 1..page_count.
    """

    if selection is None or selection.strip() == "":
        return set()

    pages: set[int] = set()
    for part in selection.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            a_str, b_str = part.split("-", 1)
            a = int(a_str.strip())
            b = int(b_str.strip())
            if a <= 0 or b <= 0:
                raise ValueError("page numbers must be >= 1")
            if b < a:
                raise ValueError(f"invalid range: {part!r}")
            pages.update(range(a, b + 1))
        else:
            p = int(part)
            if p <= 0:
                raise ValueError("page numbers must be >= 1")
            pages.add(p)

    if page_count is not None and pages and max(pages) > page_count:
        raise ValueError(f"page selection out of bounds (1..{page_count})")
    return pages


def format_page_numbers(page_numbers: list[int]) -> str:
    """
    Compact display form: consecutive pages as "3-5", otherwise "3, 5, 9".
    """

    if not page_numbers:
        return "-"
    if len(page_numbers) == 1:
        return str(page_numbers[0])

    ordered = sorted(page_numbers)
    consecutive = all(b == a + 1 for a, b in zip(ordered, ordered[1:]))
    if consecutive:
        return f"{ordered[0]}-{ordered[-1]}"
    return ", ".join(str(p) for p in ordered)
