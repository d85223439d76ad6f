"""
Settlement API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from fintrack.errors import FinTrackError
from fintrack.models.base import get_db
from fintrack.schemas.settlement import (
    SettlementCreate,
    CompensationCreate,
    SettlementResponse,
)
from fintrack.services.settlement_service import SettlementService

router = APIRouter(prefix="/settlements", tags=["Settlements"])


@router.post("", response_model=SettlementResponse, status_code=201)
def add_settlement(
    request: SettlementCreate,
    db: Session = Depends(get_db),
):
    """
    Settle part of a transaction with an existing one.

    Settling more than the original amount is accepted; the
    remaining amount is reported as zero.
    """
    service = SettlementService(db)
    try:
        settlement = service.add_settlement(request)
        db.commit()
        return settlement
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/compensation", response_model=SettlementResponse, status_code=201)
def record_compensation(
    request: CompensationCreate,
    db: Session = Depends(get_db),
):
    """Create a compensation transaction and its settlement in one step."""
    service = SettlementService(db)
    try:
        settlement = service.record_compensation(request)
        db.commit()
        return settlement
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/{settlement_id}", response_model=SettlementResponse)
def get_settlement(
    settlement_id: str,
    db: Session = Depends(get_db),
):
    return SettlementService(db).get(settlement_id)


@router.delete("/{settlement_id}", status_code=204)
def delete_settlement(
    settlement_id: str,
    db: Session = Depends(get_db),
):
    service = SettlementService(db)
    try:
        service.delete(settlement_id)
        db.commit()
    except FinTrackError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return Response(status_code=204)
