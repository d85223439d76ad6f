"""
Settlement model.

A settlement offsets part or all of an earlier transaction
(the compensated side) with a newer one (the compensation
side), e.g. a friend paying back their half of a dinner.
Several settlements may point at the same compensated
transaction. Their sum is allowed to exceed the original
amount; readers clamp the remaining amount at zero.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fintrack.models.base import Base


def new_settlement_id() -> str:
    return f"stl_{uuid.uuid4().hex}"


class Settlement(Base):
    __tablename__ = "settlement"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_settlement_amount_positive"),
    )

    id: Mapped[str] = mapped_column(
        String(40), primary_key=True, default=new_settlement_id
    )
    compensated_transaction_id: Mapped[str] = mapped_column(
        ForeignKey("transactions.id"), nullable=False, index=True
    )
    compensation_transaction_id: Mapped[str] = mapped_column(
        ForeignKey("transactions.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    compensated_transaction: Mapped["Transaction"] = relationship(
        foreign_keys=[compensated_transaction_id]
    )
    compensation_transaction: Mapped["Transaction"] = relationship(
        foreign_keys=[compensation_transaction_id]
    )

    def __repr__(self) -> str:
        return (
            f"<Settlement {self.amount} "
            f"{self.compensation_transaction_id} -> "
            f"{self.compensated_transaction_id}>"
        )
