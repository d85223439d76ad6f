"""
Pydantic schemas for settlement operations.
"""

from datetime import date as calendar_date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from fintrack.schemas.transaction import MAX_AMOUNT, NOTE_MAX_LENGTH, check_note


class SettlementCreate(BaseModel):
    """Link an existing compensation transaction to the transaction it offsets."""
    compensated_transaction_id: str = Field(min_length=1, max_length=36)
    compensation_transaction_id: str = Field(min_length=1, max_length=36)
    amount: Decimal = Field(gt=0, le=MAX_AMOUNT, decimal_places=2)

    @field_validator("amount")
    @classmethod
    def amount_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Settlement amount must be positive")
        return v


class CompensationCreate(BaseModel):
    """
    Record a reimbursement in one step.

    Creates a compensation transaction and settles `amount`
    of the compensated transaction with it.
    """
    compensated_transaction_id: str = Field(min_length=1, max_length=36)
    category_id: str = Field(min_length=1, max_length=100)
    currency_id: str = Field(min_length=1, max_length=10)
    amount: Decimal = Field(gt=0, le=MAX_AMOUNT, decimal_places=2)
    date: calendar_date
    note: str = Field(default="Compensation", min_length=1, max_length=NOTE_MAX_LENGTH)

    @field_validator("note")
    @classmethod
    def note_must_be_safe(cls, v: str) -> str:
        return check_note(v)


class SettlementResponse(BaseModel):
    id: str
    compensated_transaction_id: str
    compensation_transaction_id: str
    amount: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class SettlementImport(BaseModel):
    id: str = Field(min_length=1, max_length=40)
    compensated_transaction_id: str = Field(min_length=1, max_length=36)
    compensation_transaction_id: str = Field(min_length=1, max_length=36)
    amount: Decimal = Field(gt=0, le=MAX_AMOUNT, decimal_places=2)
    created_at: datetime | None = None
