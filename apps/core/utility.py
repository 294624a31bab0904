from __future__ import annotations

from typing import Optional, Tuple


def parse_int(value: object, default: int) -> int:
    """Safe int parse with default fallback."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def page_bounds(page: int, page_size: int) -> Tuple[int, int]:
    """Compute start/end slice indices, guarding lower bounds and capping size."""
    page = max(1, page)
    page_size = max(1, min(100, page_size))
    start = (page - 1) * page_size
    end = start + page_size
    return start, end


def clean_text(value: object) -> Optional[str]:
    """Strip a user-supplied string; None and non-strings collapse to None."""
    if not isinstance(value, str):
        return None
    return value.strip()
