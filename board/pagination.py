"""
Responsive pagination for table widgets.

The page size follows the measured container height. Resize notifications come
from a SizeObserver; the controller subscribes on construction and
unsubscribes on close().
"""

import logging
import math
from typing import Callable, List, Optional, Protocol, Tuple

from board.config_loader import PaginationConfig

logger = logging.getLogger(__name__)

ResizeCallback = Callable[[float], None]
Unsubscribe = Callable[[], None]


def compute_rows_per_page(
    container_height: float,
    row_height: int = 36,
    header_height: int = 40,
    pagination_bar_height: int = 48,
) -> int:
    available = container_height - header_height - pagination_bar_height
    return max(1, math.floor(available / row_height))


# ── Size observation ─────────────────────────────────


class SizeObserver(Protocol):
    def observe(self, callback: ResizeCallback) -> Unsubscribe: ...


class ManualSizeObserver:
    """Size observer driven by explicit notify() calls."""

    def __init__(self):
        self._callbacks: List[ResizeCallback] = []

    def observe(self, callback: ResizeCallback) -> Unsubscribe:
        self._callbacks.append(callback)

        def unsubscribe():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def notify(self, height: float):
        for callback in list(self._callbacks):
            callback(height)

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)


# ── Controller ───────────────────────────────────────


class ResponsivePaginationController:
    """Tracks `rows_per_page` and the current `page` of one table widget."""

    def __init__(
        self,
        observer: Optional[SizeObserver] = None,
        config: Optional[PaginationConfig] = None,
        initial_height: Optional[float] = None,
    ):
        self.config = config or PaginationConfig()
        self.rows_per_page = self.config.initial_rows_per_page
        self.page = 0
        self._unsubscribe: Optional[Unsubscribe] = None

        if initial_height is not None:
            self.on_resize(initial_height)
        if observer is not None:
            self._unsubscribe = observer.observe(self.on_resize)

    def on_resize(self, container_height: float) -> bool:
        """
        Recompute the page size. Changes of one row are ignored; any applied
        change sends the view back to the first page. Returns True if applied.
        """
        calculated = compute_rows_per_page(
            container_height,
            row_height=self.config.row_height,
            header_height=self.config.header_height,
            pagination_bar_height=self.config.pagination_bar_height,
        )
        if abs(calculated - self.rows_per_page) <= 1:
            return False

        logger.debug(f"rows per page {self.rows_per_page} -> {calculated}")
        self.rows_per_page = calculated
        self.page = 0
        return True

    # ── Navigation ───────────────────────────────────────

    def set_page(self, page: int, total_pages: int) -> int:
        self.page = max(0, min(page, total_pages - 1))
        return self.page

    def first_page(self) -> int:
        self.page = 0
        return self.page

    def prev_page(self) -> int:
        self.page = max(0, self.page - 1)
        return self.page

    def next_page(self, total_pages: int) -> int:
        return self.set_page(self.page + 1, total_pages)

    def last_page(self, total_pages: int) -> int:
        return self.set_page(total_pages - 1, total_pages)

    def range_label(self, total_rows: int) -> Tuple[int, int, int]:
        """(first, last, total) for a "Showing first to last of total" caption."""
        start = self.page * self.rows_per_page
        end = min(start + self.rows_per_page, total_rows)
        return (start + 1 if total_rows > 0 else 0, end, total_rows)

    def close(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
