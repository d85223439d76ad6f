"""
Virtual pagination over the transaction cache.

VirtualPaginator asks the cache which parts of a requested
range are missing, fetches only those through a loader and
feeds the results back into the cache. A loader is any
callable `(limit, offset) -> (rows, total_count)`;
ledger_loader() builds one on top of the LedgerService.
"""

from typing import Any, Callable

import structlog
from sqlalchemy.orm import Session

from fintrack.cache.transaction_cache import IndexRange, TransactionCache
from fintrack.services.ledger_service import LedgerService

logger = structlog.get_logger(__name__)

Loader = Callable[[int, int], tuple[list, int]]


def ledger_loader(db: Session) -> Loader:
    """Load annotated transactions page by page, most recent first."""
    ledger = LedgerService(db)

    def load(limit: int, offset: int) -> tuple[list, int]:
        rows = ledger.find_all_with_compensation(limit=limit, offset=offset)
        return rows, ledger.count_transactions()

    return load


class VirtualPaginator:

    def __init__(
        self,
        loader: Loader,
        cache: TransactionCache | None = None,
        page_size: int = 20,
        preload_buffer: int | None = None,
        enable_prefetch: bool = True,
    ):
        self.loader = loader
        self.cache = cache if cache is not None else TransactionCache()
        self.page_size = page_size
        self.preload_buffer = (
            self.cache.preload_buffer if preload_buffer is None else preload_buffer
        )
        self.enable_prefetch = enable_prefetch

        self.loading_ranges: set[str] = set()
        self.total_count = 0
        self.has_next_page = True
        self.visible_range = IndexRange(0, page_size)

    def load_range(self, start_index: int, count: int) -> bool:
        """
        Make [start_index, start_index + count) resident.

        Returns False when an identical range is already being
        loaded. Loader errors propagate; the range is released
        either way.
        """
        range_key = f"{start_index}-{count}"
        if range_key in self.loading_ranges:
            logger.debug("range_already_loading", range=range_key)
            return False

        if self.cache.is_range_cached(start_index, count):
            return True

        self.loading_ranges.add(range_key)
        try:
            for missing in self.cache.get_missing_ranges(start_index, count):
                rows, total_count = self.loader(missing.count, missing.start)
                self.cache.add_transactions(rows, missing.start, total_count)
                self.total_count = total_count
                self.has_next_page = missing.start + len(rows) < total_count
                logger.debug(
                    "range_loaded",
                    start=missing.start,
                    requested=missing.count,
                    received=len(rows),
                    total_count=total_count,
                )
        finally:
            self.loading_ranges.discard(range_key)
        return True

    def visible(self) -> list:
        return self.cache.get_transactions(
            self.visible_range.start, self.visible_range.count
        )

    def refresh(self) -> list:
        """Drop everything and load the first page again."""
        self.cache.clear()
        self.total_count = 0
        self.has_next_page = True
        self.visible_range = IndexRange(0, self.page_size)
        self.load_range(0, self.page_size)
        return self.visible()

    def load_more(self) -> list:
        """Load the page after the last resident row and extend the view."""
        if not self.has_next_page:
            return self.visible()

        resident = self.cache.resident_indices()
        next_start = resident[-1] + 1 if resident else 0
        self.load_range(next_start, self.page_size)

        end = max(self.visible_range.end, next_start + self.page_size - 1)
        self.visible_range = IndexRange(
            self.visible_range.start, end - self.visible_range.start + 1
        )
        return self.visible()

    def prefetch_around(self, index: int) -> bool:
        if not self.enable_prefetch:
            return False

        start = max(0, index - self.preload_buffer)
        end = min(self.total_count - 1, index + self.preload_buffer)
        count = end - start + 1
        if count <= 0:
            return False
        return self.load_range(start, count)

    def add_transaction(self, item: Any) -> None:
        """Put a newly created row at the top of the feed."""
        self.cache.add_transaction(item)
        self.total_count += 1

    def update_transaction(self, item: Any) -> bool:
        return self.cache.update_transaction(item)

    def remove_transaction(self, transaction_id: str) -> bool:
        removed = self.cache.remove_transaction(transaction_id)
        if removed:
            self.total_count = max(0, self.total_count - 1)
        return removed
