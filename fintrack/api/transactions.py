"""
Transaction API endpoints.

Writes commit on success and roll back on any domain error.
Reads that hit a missing row raise NotFoundError, which the
application-level handler turns into a 404.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from fintrack.config import get_settings
from fintrack.errors import FinTrackError
from fintrack.models.base import get_db
from fintrack.schemas.ledger import CompensationStatus
from fintrack.schemas.settlement import SettlementResponse
from fintrack.schemas.transaction import (
    TransactionCreate,
    TransactionUpdate,
    TransactionFilters,
    TransactionIds,
    TransactionResponse,
    TransactionWithCompensation,
    TransactionPage,
)
from fintrack.services.ledger_service import LedgerService
from fintrack.services.settlement_service import SettlementService
from fintrack.services.transaction_service import TransactionService

settings = get_settings()

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request: TransactionCreate,
    db: Session = Depends(get_db),
):
    """Create a new transaction."""
    service = TransactionService(db)
    try:
        txn = service.create(request)
        db.commit()
        return txn
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/bulk", response_model=list[TransactionResponse], status_code=201)
def bulk_create_transactions(
    requests: list[TransactionCreate],
    db: Session = Depends(get_db),
):
    """Create several transactions. One bad row rejects the whole batch."""
    service = TransactionService(db)
    try:
        created = service.bulk_create(requests)
        db.commit()
        return created
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/bulk-delete", status_code=204)
def bulk_delete_transactions(
    request: TransactionIds,
    db: Session = Depends(get_db),
):
    service = TransactionService(db)
    try:
        service.bulk_delete(request.ids)
        db.commit()
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return Response(status_code=204)


@router.get("", response_model=list[TransactionResponse])
def list_transactions(
    filters: TransactionFilters = Depends(),
    limit: int | None = Query(default=None, ge=1),
    offset: int | None = Query(default=None, ge=0),
    db: Session = Depends(get_db),
):
    """List transactions most recent first, optionally filtered."""
    return TransactionService(db).find_with_filters(filters, limit, offset)


@router.get("/page", response_model=TransactionPage)
def get_transaction_page(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=settings.PAGE_SIZE, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """
    One index-addressed page of annotated transactions.

    Index 0 is the most recent transaction. total_count lets
    the client size its list without loading every row.
    """
    ledger = LedgerService(db)
    return TransactionPage(
        items=ledger.find_all_with_compensation(limit=limit, offset=offset),
        total_count=ledger.count_transactions(),
        offset=offset,
        limit=limit,
    )


@router.get("/compensatable", response_model=list[TransactionWithCompensation])
def list_compensatable_transactions(db: Session = Depends(get_db)):
    """Income, expense and investment transactions with an outstanding amount."""
    return LedgerService(db).list_compensatable()


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
):
    return TransactionService(db).get(transaction_id)


@router.get("/{transaction_id}/compensation", response_model=CompensationStatus)
def get_compensation_status(
    transaction_id: str,
    db: Session = Depends(get_db),
):
    """How much of the transaction has been settled and what remains."""
    return LedgerService(db).compensation_status(transaction_id)


@router.get("/{transaction_id}/settlements", response_model=list[SettlementResponse])
def list_transaction_settlements(
    transaction_id: str,
    db: Session = Depends(get_db),
):
    TransactionService(db).get(transaction_id)
    return SettlementService(db).list_for_transaction(transaction_id)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    request: TransactionUpdate,
    db: Session = Depends(get_db),
):
    """
    Partially update a transaction.

    The merged result must satisfy the same rules as a new
    transaction or nothing is written.
    """
    service = TransactionService(db)
    try:
        txn = service.update(transaction_id, request)
        db.commit()
        return txn
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
):
    service = TransactionService(db)
    try:
        service.get(transaction_id)
        service.delete(transaction_id)
        db.commit()
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return Response(status_code=204)
