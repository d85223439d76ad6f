"""
Export and import of the whole ledger.

JSON exports are full backups that import_json() can restore.
CSV exports are a flat, human-readable listing of transactions
and are not meant to be read back.
"""

import csv
from datetime import datetime
from io import StringIO
from typing import Any

import pydantic
import structlog
from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fintrack.errors import ValidationError, translate_store_error
from fintrack.models.base import atomic
from fintrack.models.reference import Category, Currency, TransactionType
from fintrack.models.settlement import Settlement
from fintrack.models.transaction import Transaction
from fintrack.schemas.category import (
    CategoryResponse,
    CurrencyResponse,
    TransactionTypeResponse,
)
from fintrack.schemas.settlement import SettlementImport, SettlementResponse
from fintrack.schemas.transaction import TransactionImport, TransactionResponse
from fintrack.services.transaction_service import format_validation_error

logger = structlog.get_logger(__name__)

EXPORT_VERSION = "1.0"
CSV_HEADER = ["ID", "Amount", "Date", "Note", "Type", "Category", "Currency"]


def _validate(schema: type[pydantic.BaseModel], row: Any, label: str):
    try:
        return schema.model_validate(row)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid {label}: {format_validation_error(exc)}") from exc


class ExportService:

    def __init__(self, db: Session):
        self.db = db

    def _all(self, model, *order_by) -> list:
        return list(self.db.execute(
            select(model).order_by(*order_by)
        ).scalars().all())

    # --- Export ---

    def export_json(self) -> dict[str, Any]:
        """Return a backup document ready for json.dumps()."""
        transactions = self._all(Transaction, Transaction.created_at, Transaction.id)
        categories = self._all(Category, Category.id)
        types = self._all(TransactionType, TransactionType.id)
        currencies = self._all(Currency, Currency.id)
        settlements = self._all(Settlement, Settlement.created_at, Settlement.id)

        def dump(schema, rows):
            return [schema.model_validate(row).model_dump(mode="json") for row in rows]

        document = {
            "version": EXPORT_VERSION,
            "exportDate": datetime.utcnow().isoformat() + "Z",
            "data": {
                "transactions": dump(TransactionResponse, transactions),
                "categories": dump(CategoryResponse, categories),
                "types": dump(TransactionTypeResponse, types),
                "currencies": dump(CurrencyResponse, currencies),
                "settlements": dump(SettlementResponse, settlements),
            },
            "meta": {
                "transactionCount": len(transactions),
                "categoryCount": len(categories),
            },
        }
        logger.info(
            "ledger_exported",
            format="json",
            transactions=len(transactions),
        )
        return document

    def export_csv(self) -> str:
        """
        Return every transaction as CSV, newest first.

        All fields are quoted. With no transactions the result
        is just the header row.
        """
        rows = self.db.execute(
            select(
                Transaction.id,
                Transaction.amount,
                Transaction.date,
                Transaction.note,
                TransactionType.name,
                Category.name,
                Currency.symbol,
            )
            .outerjoin(TransactionType, Transaction.type_id == TransactionType.id)
            .outerjoin(Category, Transaction.category_id == Category.id)
            .outerjoin(Currency, Transaction.currency_id == Currency.id)
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        ).all()

        output = StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for row in rows:
            writer.writerow([
                row[0],
                f"{row[1]:.2f}",
                row[2].isoformat(),
                row[3],
                row[4] or "",
                row[5] or "",
                row[6] or "",
            ])

        logger.info("ledger_exported", format="csv", transactions=len(rows))
        return output.getvalue()

    # --- Import ---

    def _insert_missing(self, model, rows) -> int:
        inserted = 0
        for row in rows:
            if self.db.get(model, row.id) is None:
                self.db.add(model(**row.model_dump()))
                inserted += 1
        return inserted

    def import_json(self, document: Any) -> dict[str, int]:
        """
        Restore a JSON backup.

        Existing transactions and settlements are replaced.
        Categories, currencies and types are added only where
        the id is not already present. Either the whole backup
        is applied or nothing is.
        """
        if not isinstance(document, dict) or not document.get("version") or not document.get("data"):
            raise ValidationError("Invalid backup file format")

        data = document["data"]
        categories = [_validate(CategoryResponse, row, "category") for row in data.get("categories") or []]
        currencies = [_validate(CurrencyResponse, row, "currency") for row in data.get("currencies") or []]
        types = [_validate(TransactionTypeResponse, row, "type") for row in data.get("types") or []]
        transactions = [_validate(TransactionImport, row, "transaction") for row in data.get("transactions") or []]
        settlements = [_validate(SettlementImport, row, "settlement") for row in data.get("settlements") or []]

        with atomic(self.db):
            try:
                self.db.execute(delete(Settlement))
                self.db.execute(delete(Transaction))

                counts = {
                    "categories": self._insert_missing(Category, categories),
                    "currencies": self._insert_missing(Currency, currencies),
                    "types": self._insert_missing(TransactionType, types),
                }
                self.db.flush()

                now = datetime.utcnow()
                for row in transactions:
                    values = row.model_dump()
                    values["created_at"] = values["created_at"] or now
                    values["updated_at"] = values["updated_at"] or now
                    self.db.add(Transaction(**values))
                self.db.flush()

                for row in settlements:
                    values = row.model_dump()
                    values["created_at"] = values["created_at"] or now
                    self.db.add(Settlement(**values))
                self.db.flush()
            except SQLAlchemyError as exc:
                raise translate_store_error(exc) from exc

        counts["transactions"] = len(transactions)
        counts["settlements"] = len(settlements)
        logger.info("ledger_imported", **counts)
        return counts
