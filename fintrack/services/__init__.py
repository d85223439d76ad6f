"""Business logic services."""

from fintrack.services.ledger_service import LedgerService
from fintrack.services.transaction_service import TransactionService
from fintrack.services.category_service import CategoryService
from fintrack.services.reference_service import ReferenceService
from fintrack.services.settlement_service import SettlementService
from fintrack.services.export_service import ExportService

__all__ = [
    "LedgerService",
    "TransactionService",
    "CategoryService",
    "ReferenceService",
    "SettlementService",
    "ExportService",
]
