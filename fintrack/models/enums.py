"""
Shared enumerations for database models.

Transaction types are rows in the `type` table so the
presentation layer can list them, but the ledger rules
need to know a few of them by identity.
"""

import enum


class TransactionTypeId(str, enum.Enum):
    """Identity of the built-in transaction types."""
    INCOME = "income"
    EXPENSE = "expense"
    COMPENSATION = "compensation"
    SAVINGS = "savings"
    INVESTMENT = "investment"


# Types whose transactions can be partially or fully settled.
COMPENSATABLE_TYPES = (
    TransactionTypeId.INCOME,
    TransactionTypeId.EXPENSE,
    TransactionTypeId.INVESTMENT,
)
