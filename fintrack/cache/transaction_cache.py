"""
Windowed transaction cache.

The transaction list is addressed by position: index 0 is the
most recent transaction under the ledger's canonical order.
The cache holds a sparse index -> row mapping for whatever
part of that sequence has been fetched, reports which ranges
are still missing, and evicts rows to stay under a fixed
budget.

Eviction keeps a contiguous run of resident indices centred
on the median resident index. Scrolling tends to cluster
around the viewport, so the median is a cheap stand-in for
"where the user currently is".

Rows only need an `id` attribute. The cache never talks to the
database; VirtualPaginator does the fetching.
"""

from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

# Recency bookkeeping only; correctness never depends on it.
MAX_TRACKED_WINDOWS = 3


@dataclass(frozen=True)
class IndexRange:
    start: int
    count: int

    @property
    def end(self) -> int:
        """Last index in the range (inclusive)."""
        return self.start + self.count - 1


@dataclass
class CacheWindow:
    start_index: int
    end_index: int
    ids: list[str] = field(default_factory=list)


class TransactionCache:
    """
    Bounded, index-addressed store of transaction rows.

    Not thread-safe: one cache per consumer session.
    """

    def __init__(
        self,
        max_in_memory_items: int = 100,
        window_size: int = 50,
        preload_buffer: int = 20,
    ):
        if max_in_memory_items < 1:
            raise ValueError("max_in_memory_items must be at least 1")
        self.max_in_memory_items = max_in_memory_items
        self.window_size = window_size
        self.preload_buffer = preload_buffer

        self._items: dict[int, Any] = {}
        self.windows: list[CacheWindow] = []
        self.current_window: CacheWindow | None = None
        self.total_count = 0

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, index: int) -> bool:
        return index in self._items

    def resident_indices(self) -> list[int]:
        return sorted(self._items)

    # --- Writes ---

    def add_transactions(self, items: list, start_index: int, total_count: int) -> None:
        """
        Store `items` at start_index, start_index + 1, ...

        Existing rows at those indices are overwritten. The
        known total is replaced by `total_count` and any row
        that now falls past it is dropped.
        """
        self.total_count = total_count

        for offset, item in enumerate(items):
            self._items[start_index + offset] = item

        self._drop_out_of_range()

        if items:
            self._update_windows(CacheWindow(
                start_index=start_index,
                end_index=start_index + len(items) - 1,
                ids=[item.id for item in items],
            ))

        self._cleanup()

    def add_transaction(self, item, index: int | None = None) -> None:
        """
        Insert a single row.

        With an explicit index the row is written there. Without
        one every resident row moves down by one and the new row
        takes index 0.
        """
        if index is not None:
            if index < 0:
                raise ValueError("index must not be negative")
            self._items[index] = item
            self.total_count = max(self.total_count, index + 1)
        else:
            self._shift_forward()
            self._items[0] = item
            self.total_count += 1

        self._cleanup(keep_index=0 if index is None else index)

    def remove_transaction(self, transaction_id: str) -> bool:
        """Remove a row by id and close the gap. False if not resident."""
        removed_index = self._find(transaction_id)
        if removed_index is None:
            return False

        del self._items[removed_index]
        self._shift_backward(removed_index)
        self.total_count = max(0, self.total_count - 1)
        return True

    def update_transaction(self, item) -> bool:
        """Replace a resident row in place. False if not resident."""
        index = self._find(item.id)
        if index is None:
            return False
        self._items[index] = item
        return True

    def clear(self) -> None:
        self._items.clear()
        self.windows = []
        self.current_window = None
        self.total_count = 0

    # --- Reads ---

    def get_transactions(self, start_index: int, count: int) -> list:
        """
        Resident rows in [start_index, start_index + count), in order.

        Absent indices are skipped. Never fetches.
        """
        end = min(start_index + count, self.total_count)
        return [
            self._items[index]
            for index in range(start_index, end)
            if index in self._items
        ]

    def get_all_cached(self) -> list:
        return [self._items[index] for index in sorted(self._items)]

    def is_range_cached(self, start_index: int, count: int) -> bool:
        return all(
            index in self._items
            for index in range(start_index, start_index + count)
        )

    def get_missing_ranges(self, start_index: int, count: int) -> list[IndexRange]:
        """
        Maximal runs of absent indices in [start_index, start_index + count).

        Ascending, non-overlapping, found in one pass.
        """
        missing: list[IndexRange] = []
        run_start: int | None = None
        end = start_index + count

        for index in range(start_index, end):
            if index not in self._items:
                if run_start is None:
                    run_start = index
            elif run_start is not None:
                missing.append(IndexRange(run_start, index - run_start))
                run_start = None

        if run_start is not None:
            missing.append(IndexRange(run_start, end - run_start))

        return missing

    def stats(self) -> dict[str, Any]:
        cache_size = len(self._items)
        memory_usage = round(cache_size / self.max_in_memory_items * 100)
        return {
            "cache_size": cache_size,
            "total_count": self.total_count,
            "memory_usage": f"{memory_usage}%",
            "windows": len(self.windows),
        }

    # --- Internals ---

    def _find(self, transaction_id: str) -> int | None:
        for index, item in self._items.items():
            if item.id == transaction_id:
                return index
        return None

    def _drop_out_of_range(self) -> None:
        for index in [i for i in self._items if i >= self.total_count]:
            del self._items[index]

    def _update_windows(self, window: CacheWindow) -> None:
        self.windows = [
            w for w in self.windows
            if w.end_index < window.start_index or w.start_index > window.end_index
        ]
        self.windows.append(window)
        self.current_window = window
        if len(self.windows) > MAX_TRACKED_WINDOWS:
            self.windows = self.windows[-MAX_TRACKED_WINDOWS:]

    def _cleanup(self, keep_index: int | None = None) -> None:
        """
        Evict down to the budget, keeping a run centred on the median.

        When `keep_index` is given the kept run slides just far
        enough to include it.
        """
        if len(self._items) <= self.max_in_memory_items:
            return

        indices = sorted(self._items)
        mid = len(indices) // 2
        keep_start = max(0, mid - self.max_in_memory_items // 2)
        keep_start = min(keep_start, len(indices) - self.max_in_memory_items)

        if keep_index in self._items:
            position = indices.index(keep_index)
            if position < keep_start:
                keep_start = position
            elif position >= keep_start + self.max_in_memory_items:
                keep_start = position - self.max_in_memory_items + 1
        keep_end = keep_start + self.max_in_memory_items - 1

        before = len(indices)
        self._items = {
            index: self._items[index]
            for index in indices[keep_start:keep_end + 1]
        }
        logger.debug(
            "transaction_cache_evicted",
            kept=len(self._items),
            evicted=before - len(self._items),
            first_index=indices[keep_start],
            last_index=indices[keep_end],
        )

    def _shift_forward(self) -> None:
        self._items = {index + 1: item for index, item in self._items.items()}

    def _shift_backward(self, removed_index: int) -> None:
        self._items = {
            (index - 1 if index > removed_index else index): item
            for index, item in self._items.items()
        }
