"""Client-side pagination for tables and card lists."""

import math
from dataclasses import dataclass
from typing import Any

import pandas as pd


@dataclass(frozen=True)
class Page:
    items: Any  # list slice or DataFrame slice
    page: int
    per_page: int
    total_items: int
    total_pages: int

    @property
    def first_index(self) -> int:
        """1-based index of the first item shown (0 when empty)."""
        if self.total_items == 0:
            return 0
        return (self.page - 1) * self.per_page + 1

    @property
    def last_index(self) -> int:
        """1-based index of the last item shown."""
        return min(self.page * self.per_page, self.total_items)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def caption(self, noun: str = "items") -> str:
        return f"Showing {self.first_index} - {self.last_index} of {self.total_items} {noun}"


def paginate(items: list | pd.DataFrame, page: int, per_page: int) -> Page:
    """Slice out one page, clamping the page number into [1, total_pages].

    An empty collection yields a single empty page.
    """
    if per_page < 1:
        raise ValueError(f"per_page must be positive, got {per_page}")

    total_items = len(items)
    total_pages = max(1, math.ceil(total_items / per_page))
    page = min(max(int(page), 1), total_pages)

    lo = (page - 1) * per_page
    hi = lo + per_page
    if isinstance(items, pd.DataFrame):
        sliced = items.iloc[lo:hi]
    else:
        sliced = list(items[lo:hi])

    return Page(
        items=sliced,
        page=page,
        per_page=per_page,
        total_items=total_items,
        total_pages=total_pages,
    )
