"""
Reference entities: transaction types, categories and currencies.

These are small lookup tables that transactions join against.
Their ids are short readable strings ("expense", "food", "usd").
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from fintrack.models.base import Base


DEFAULT_CATEGORY_COLOR = "#BDC3C7"
DEFAULT_CATEGORY_ICON = "more-horizontal"


class TransactionType(Base):
    __tablename__ = "type"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<TransactionType {self.id}>"


class Category(Base):
    __tablename__ = "category"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str | None] = mapped_column(
        String(7), nullable=True, default=DEFAULT_CATEGORY_COLOR
    )
    icon: Mapped[str | None] = mapped_column(
        String(50), nullable=True, default=DEFAULT_CATEGORY_ICON
    )

    def __repr__(self) -> str:
        return f"<Category {self.id} ({self.name})>"


class Currency(Base):
    __tablename__ = "currency"

    id: Mapped[str] = mapped_column(String(10), primary_key=True)
    code: Mapped[str] = mapped_column(String(3), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)

    def __repr__(self) -> str:
        return f"<Currency {self.code}>"
