"""
Pydantic schemas for transaction operations.

TransactionCreate carries every write-time invariant of a
transaction. Updates are merged onto the stored row and the
result is validated again with the same schema before anything
is written.
"""

import re
from datetime import date as calendar_date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


MAX_AMOUNT = Decimal("999999999")
NOTE_MAX_LENGTH = 255

# Defense in depth only: every statement is parameterized anyway.
SQL_KEYWORDS = re.compile(
    r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER)\b", re.IGNORECASE
)


def check_note(note: str) -> str:
    if not note.strip():
        raise ValueError("Note/description is required")
    if SQL_KEYWORDS.search(note):
        raise ValueError("Invalid characters detected in note field")
    return note


def check_reference(value: str) -> str:
    if not value.strip():
        raise ValueError("reference id must not be blank")
    return value


# --- Request Schemas ---

class TransactionCreate(BaseModel):
    type_id: str = Field(min_length=1, max_length=50)
    category_id: str = Field(min_length=1, max_length=100)
    currency_id: str = Field(min_length=1, max_length=10)
    amount: Decimal = Field(gt=0, le=MAX_AMOUNT, decimal_places=2)
    date: calendar_date
    note: str = Field(min_length=1, max_length=NOTE_MAX_LENGTH)
    settlement_id: str | None = None
    recurrence_id: str | None = None

    @field_validator("amount")
    @classmethod
    def amount_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Amount must be a positive number")
        return v

    @field_validator("note")
    @classmethod
    def note_must_be_safe(cls, v: str) -> str:
        return check_note(v)

    @field_validator("type_id", "category_id", "currency_id")
    @classmethod
    def reference_not_blank(cls, v: str) -> str:
        return check_reference(v)


class TransactionUpdate(BaseModel):
    """Partial update. Only the fields listed here can ever be changed."""
    type_id: str | None = Field(default=None, min_length=1, max_length=50)
    category_id: str | None = Field(default=None, min_length=1, max_length=100)
    currency_id: str | None = Field(default=None, min_length=1, max_length=10)
    amount: Decimal | None = Field(default=None, gt=0, le=MAX_AMOUNT, decimal_places=2)
    date: calendar_date | None = None
    note: str | None = Field(default=None, min_length=1, max_length=NOTE_MAX_LENGTH)
    settlement_id: str | None = None
    recurrence_id: str | None = None

    model_config = {"extra": "forbid"}


class TransactionFilters(BaseModel):
    start_date: calendar_date | None = None
    end_date: calendar_date | None = None
    type_id: str | None = None
    category_id: str | None = None
    currency_id: str | None = None
    search_term: str | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None


# --- Response Schemas ---

class TransactionResponse(BaseModel):
    id: str
    type_id: str
    category_id: str
    currency_id: str
    amount: Decimal
    date: calendar_date
    settlement_id: str | None
    recurrence_id: str | None
    note: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TransactionWithCompensation(TransactionResponse):
    """A transaction annotated with its settlement-derived figures."""
    type_name: str | None = None
    category_name: str | None = None
    currency_symbol: str | None = None
    compensated_amount: Decimal = Decimal("0.00")
    remaining_amount: Decimal
    is_fully_compensated: bool


class TransactionPage(BaseModel):
    items: list[TransactionWithCompensation]
    total_count: int
    offset: int
    limit: int


class TransactionImport(TransactionCreate):
    """A transaction row from a JSON backup; keeps its id and timestamps."""
    id: str = Field(min_length=1, max_length=36)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TransactionIds(BaseModel):
    ids: list[str] = Field(min_length=1)
