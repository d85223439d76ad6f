"""
Pydantic schemas for settlement-aware ledger figures.

These are the plain-data shapes handed to the presentation
layer. All amounts are net of settlements.
"""

from decimal import Decimal

from pydantic import BaseModel


class CompensationStatus(BaseModel):
    original_amount: Decimal
    compensated_amount: Decimal
    remaining_amount: Decimal
    is_fully_compensated: bool


class CategoryExpense(BaseModel):
    """One slice of the expenses-by-category breakdown."""
    category_name: str | None
    category_color: str | None
    amount: Decimal
    percentage: int


class TypeTotalResponse(BaseModel):
    type_id: str
    total: Decimal


class BalanceResponse(BaseModel):
    balance: Decimal
    total_income: Decimal
    total_expenses: Decimal


class LedgerStats(BaseModel):
    transactions: int
    categories: int
    total_income: Decimal
    total_expenses: Decimal
