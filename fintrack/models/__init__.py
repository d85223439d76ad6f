"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from fintrack.models.base import Base, atomic
from fintrack.models.enums import TransactionTypeId, COMPENSATABLE_TYPES
from fintrack.models.reference import TransactionType, Category, Currency
from fintrack.models.transaction import Transaction
from fintrack.models.settlement import Settlement

__all__ = [
    "Base",
    "atomic",
    "TransactionTypeId",
    "COMPENSATABLE_TYPES",
    "TransactionType",
    "Category",
    "Currency",
    "Transaction",
    "Settlement",
]
