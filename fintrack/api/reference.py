"""
Reference data endpoints: transaction types and currencies.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fintrack.models.base import get_db
from fintrack.schemas.category import CurrencyResponse, TransactionTypeResponse
from fintrack.services.reference_service import ReferenceService

router = APIRouter(prefix="/reference", tags=["Reference"])


@router.get("/types", response_model=list[TransactionTypeResponse])
def list_transaction_types(db: Session = Depends(get_db)):
    return ReferenceService(db).list_types()


@router.get("/currencies", response_model=list[CurrencyResponse])
def list_currencies(db: Session = Depends(get_db)):
    return ReferenceService(db).list_currencies()
