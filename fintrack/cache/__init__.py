"""Index-addressed caching for the transaction list."""

from fintrack.cache.transaction_cache import TransactionCache, IndexRange
from fintrack.cache.pagination import VirtualPaginator, ledger_loader

__all__ = ["TransactionCache", "IndexRange", "VirtualPaginator", "ledger_loader"]
