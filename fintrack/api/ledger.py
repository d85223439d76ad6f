"""
Ledger API endpoints.

Read-only, settlement-aware figures. Every amount here is net
of settlements; nothing in this router sums raw amounts.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from fintrack.models.base import get_db
from fintrack.models.enums import TransactionTypeId
from fintrack.schemas.ledger import (
    BalanceResponse,
    CategoryExpense,
    LedgerStats,
    TypeTotalResponse,
)
from fintrack.services.ledger_service import LedgerService

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.get("/balance", response_model=BalanceResponse)
def get_balance(db: Session = Depends(get_db)):
    """Income minus expenses. Savings are not part of the balance."""
    service = LedgerService(db)
    income = service.total_by_type(TransactionTypeId.INCOME)
    expenses = service.total_by_type(TransactionTypeId.EXPENSE)
    return BalanceResponse(
        balance=income - expenses,
        total_income=income,
        total_expenses=expenses,
    )


@router.get("/totals/{type_id}", response_model=TypeTotalResponse)
def get_total_by_type(
    type_id: str,
    db: Session = Depends(get_db),
):
    try:
        type_key = TransactionTypeId(type_id)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown transaction type: {type_id}")
    return TypeTotalResponse(
        type_id=type_key.value,
        total=LedgerService(db).total_by_type(type_key),
    )


@router.get("/expenses-by-category", response_model=list[CategoryExpense])
def get_expenses_by_category(db: Session = Depends(get_db)):
    """Net expense per category with its whole-percent share."""
    return LedgerService(db).expenses_by_category()


@router.get("/stats", response_model=LedgerStats)
def get_stats(db: Session = Depends(get_db)):
    return LedgerService(db).stats()
