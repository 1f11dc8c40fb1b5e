"""
catmaid_connector_viewer.viewer.pagination

Paging over an ordered connector list, laid out as a grid of rows x cols panels.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

DEFAULT_ROWS = 3
DEFAULT_COLS = 3
MAX_ROWS = 5
MAX_COLS = 5


@dataclass(frozen=True, slots=True)
class Showing:
    start: int
    stop: int
    total: int


@dataclass(slots=True)
class ConnectorPager:
    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    order: Sequence[Any] = field(default_factory=list)
    first_idx: int = 0

    def __post_init__(self) -> None:
        self.set_dimensions(self.rows, self.cols)

    @property
    def page_size(self) -> int:
        return self.rows * self.cols

    @property
    def total(self) -> int:
        return len(self.order)

    @property
    def current_page(self) -> int:
        return self.first_idx // self.page_size

    @property
    def max_page(self) -> int:
        # One-based page count; an empty order still shows one (empty) page.
        return max(math.ceil(self.total / self.page_size), 1)

    def set_dimensions(self, rows: int, cols: int) -> None:
        if not 1 <= rows <= MAX_ROWS:
            raise ValueError(f"rows must be between 1 and {MAX_ROWS}, got {rows}")
        if not 1 <= cols <= MAX_COLS:
            raise ValueError(f"cols must be between 1 and {MAX_COLS}, got {cols}")
        first_visible = self.first_idx
        self.rows = rows
        self.cols = cols
        # Keep the first visible connector on screen after a resize.
        self.first_idx = (first_visible // self.page_size) * self.page_size

    def set_order(self, order: Sequence[Any]) -> None:
        self.order = order
        self.first_idx = 0

    def reset(self) -> None:
        self.set_order([])

    def change_page(self, page: int) -> int:
        """
        Move to zero-indexed `page` and return the page actually shown.

        Out-of-bounds pages fall back to page 0.
        """

        if self.total == 0:
            self.first_idx = 0
            return 0

        first_idx = page * self.page_size
        if page < 0 or first_idx >= self.total:
            return self.change_page(0)
        self.first_idx = first_idx
        return page

    def visible(self) -> list[Any]:
        return list(self.order[self.first_idx : self.first_idx + self.page_size])

    def showing(self) -> Showing:
        total = self.total
        return Showing(
            start=min(self.first_idx + 1, total),
            stop=min(self.first_idx + self.page_size, total),
            total=total,
        )
