"""
Transaction model.

A single income, expense, compensation, savings or investment
record. The amount is always positive; the type decides the
direction. Settlement-derived figures (compensated and
remaining amount) are computed by the LedgerService and never
stored here.
"""

import uuid
from datetime import date as calendar_date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Date, DateTime, Numeric, ForeignKey, CheckConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.models.base import Base
from fintrack.models.reference import Category, Currency, TransactionType


def new_transaction_id() -> str:
    return str(uuid.uuid4())


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        Index("ix_transactions_date_created", "date", "created_at"),
        Index("ix_transactions_type_date", "type_id", "date"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=new_transaction_id
    )
    type_id: Mapped[str] = mapped_column(
        ForeignKey("type.id"), nullable=False, index=True
    )
    category_id: Mapped[str] = mapped_column(
        ForeignKey("category.id"), nullable=False, index=True
    )
    currency_id: Mapped[str] = mapped_column(
        ForeignKey("currency.id"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    date: Mapped[calendar_date] = mapped_column(Date, nullable=False)
    # The settlement this transaction takes part in as the compensation side.
    # Kept as a plain column: settlement rows point back at transactions,
    # and a second foreign key would make the two tables cyclic.
    settlement_id: Mapped[str | None] = mapped_column(
        String(40), nullable=True, index=True
    )
    recurrence_id: Mapped[str | None] = mapped_column(
        String(40), nullable=True
    )
    note: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    type: Mapped["TransactionType"] = relationship()
    category: Mapped["Category"] = relationship()
    currency: Mapped["Currency"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.id} {self.type_id} "
            f"{self.amount} ({self.date})>"
        )
