"""
Reference data: transaction types and currencies, plus the
first-run seeding of every lookup table.
"""

import structlog
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from fintrack.models.base import atomic
from fintrack.models.enums import TransactionTypeId
from fintrack.models.reference import Currency, TransactionType
from fintrack.services.category_service import CategoryService

logger = structlog.get_logger(__name__)


DEFAULT_TYPES = [
    (TransactionTypeId.INCOME.value, "Income"),
    (TransactionTypeId.EXPENSE.value, "Expense"),
    (TransactionTypeId.COMPENSATION.value, "Compensation"),
    (TransactionTypeId.SAVINGS.value, "Savings"),
    (TransactionTypeId.INVESTMENT.value, "Investment"),
]

DEFAULT_CURRENCIES = [
    ("usd", "USD", "US Dollar", "$"),
    ("eur", "EUR", "Euro", "€"),
    ("gbp", "GBP", "British Pound", "£"),
]


class ReferenceService:

    def __init__(self, db: Session):
        self.db = db

    def list_types(self) -> list[TransactionType]:
        return list(self.db.execute(
            select(TransactionType).order_by(TransactionType.name)
        ).scalars().all())

    def list_currencies(self) -> list[Currency]:
        return list(self.db.execute(
            select(Currency).order_by(Currency.code)
        ).scalars().all())

    def seed_defaults(self) -> bool:
        """
        Insert default types, currencies and categories on first run.

        Does nothing if the type table already has rows. Returns
        True when seeding happened. The whole batch is atomic.
        """
        existing = self.db.execute(
            select(func.count()).select_from(TransactionType)
        ).scalar_one()
        if existing > 0:
            return False

        with atomic(self.db):
            self.db.add_all(
                TransactionType(id=type_id, name=name)
                for type_id, name in DEFAULT_TYPES
            )
            self.db.add_all(
                Currency(id=currency_id, code=code, name=name, symbol=symbol)
                for currency_id, code, name, symbol in DEFAULT_CURRENCIES
            )
            self.db.flush()
            CategoryService(self.db).ensure_defaults()

        logger.info("reference_data_seeded")
        return True
