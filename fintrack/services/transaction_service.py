"""
Transaction service: create, read, update and delete transactions.

Each write:
1. Validates the payload (schema invariants, references exist)
2. Builds parameterized statements only; dynamic SET clauses
   pass through the column allow-list
3. Flushes, leaving the commit to the caller

Updates merge the requested fields onto the stored row and
validate the merged result before anything is written.
"""

from datetime import datetime

import pydantic
import structlog
from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fintrack.errors import NotFoundError, ValidationError, translate_store_error
from fintrack.models.base import atomic
from fintrack.models.reference import Category, Currency, TransactionType
from fintrack.models.transaction import Transaction
from fintrack.schemas.transaction import (
    TransactionCreate,
    TransactionUpdate,
    TransactionFilters,
)
from fintrack.services.ledger_service import CANONICAL_ORDER
from fintrack.services.update_fields import build_update_values

logger = structlog.get_logger(__name__)


def format_validation_error(exc: pydantic.ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )


class TransactionService:

    def __init__(self, db: Session):
        self.db = db

    def _flush(self) -> None:
        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            raise translate_store_error(exc) from exc

    def _validate_references(self, type_id: str, category_id: str, currency_id: str) -> None:
        """Validate that the referenced type, category and currency exist."""
        for model, value, label in (
            (TransactionType, type_id, "Transaction type"),
            (Category, category_id, "Category"),
            (Currency, currency_id, "Currency"),
        ):
            if self.db.get(model, value) is None:
                raise ValidationError(f"{label} '{value}' does not exist")

    def _paginate(self, query, limit: int | None, offset: int | None):
        if limit is not None:
            query = query.limit(limit)
            if offset is not None:
                query = query.offset(offset)
        return query

    # --- Writes ---

    def create(self, request: TransactionCreate) -> Transaction:
        """Create a new transaction."""
        self._validate_references(
            request.type_id, request.category_id, request.currency_id
        )

        txn = Transaction(**request.model_dump())
        self.db.add(txn)
        self._flush()

        logger.info(
            "transaction_created",
            transaction_id=txn.id,
            type_id=txn.type_id,
            amount=str(txn.amount),
        )
        return txn

    def update(self, transaction_id: str, request: TransactionUpdate) -> Transaction:
        """
        Apply a partial update.

        The stored row and the requested changes are merged and
        the merge is validated as if it were a new transaction.
        A change that would break any invariant is rejected
        before the UPDATE is built.
        """
        txn = self.get(transaction_id)
        changes = request.model_dump(exclude_unset=True)
        if not changes:
            return txn

        current = {
            field: getattr(txn, field)
            for field in TransactionCreate.model_fields
        }
        try:
            merged = TransactionCreate.model_validate({**current, **changes})
        except pydantic.ValidationError as exc:
            raise ValidationError(format_validation_error(exc)) from exc

        self._validate_references(
            merged.type_id, merged.category_id, merged.currency_id
        )

        values = build_update_values(
            "transactions",
            {**changes, "updated_at": datetime.utcnow()},
        )
        try:
            self.db.execute(
                update(Transaction)
                .where(Transaction.id == transaction_id)
                .values(**values)
            )
        except SQLAlchemyError as exc:
            raise translate_store_error(exc) from exc
        self._flush()
        self.db.refresh(txn)

        logger.info(
            "transaction_updated",
            transaction_id=transaction_id,
            fields=sorted(changes),
        )
        return txn

    def delete(self, transaction_id: str) -> None:
        """
        Delete a transaction.

        Deletion is unconditional. Settlements that reference the
        transaction are left in place.
        """
        try:
            self.db.execute(
                delete(Transaction).where(Transaction.id == transaction_id)
            )
        except SQLAlchemyError as exc:
            raise translate_store_error(exc) from exc
        self._flush()
        logger.info("transaction_deleted", transaction_id=transaction_id)

    def bulk_create(self, requests: list[TransactionCreate]) -> list[Transaction]:
        """Create several transactions; either all are written or none."""
        with atomic(self.db):
            return [self.create(request) for request in requests]

    def bulk_delete(self, transaction_ids: list[str]) -> None:
        """Delete several transactions; either all are removed or none."""
        with atomic(self.db):
            for transaction_id in transaction_ids:
                self.delete(transaction_id)

    # --- Reads ---

    def get(self, transaction_id: str) -> Transaction:
        """Get a transaction by ID."""
        txn = self.db.get(Transaction, transaction_id)
        if not txn:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return txn

    def list_all(self, limit: int | None = None, offset: int | None = None) -> list[Transaction]:
        """Return transactions most recent first."""
        query = select(Transaction).order_by(*CANONICAL_ORDER)
        return list(
            self.db.execute(self._paginate(query, limit, offset)).scalars().all()
        )

    def count(self) -> int:
        return self.db.execute(
            select(func.count()).select_from(Transaction)
        ).scalar_one()

    def find_by_date_range(
        self,
        start_date,
        end_date,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Transaction]:
        """Return transactions dated within [start_date, end_date]."""
        return self.find_with_filters(
            TransactionFilters(start_date=start_date, end_date=end_date),
            limit,
            offset,
        )

    def search(
        self,
        search_term: str,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Transaction]:
        """Match the term against the note, category name and type name."""
        return self.find_with_filters(
            TransactionFilters(search_term=search_term), limit, offset
        )

    def find_with_filters(
        self,
        filters: TransactionFilters,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Transaction]:
        query = (
            select(Transaction)
            .outerjoin(TransactionType, Transaction.type_id == TransactionType.id)
            .outerjoin(Category, Transaction.category_id == Category.id)
        )

        if filters.start_date and filters.end_date:
            query = query.where(
                Transaction.date.between(filters.start_date, filters.end_date)
            )
        if filters.type_id:
            query = query.where(Transaction.type_id == filters.type_id)
        if filters.category_id:
            query = query.where(Transaction.category_id == filters.category_id)
        if filters.currency_id:
            query = query.where(Transaction.currency_id == filters.currency_id)
        if filters.search_term:
            term = filters.search_term
            query = query.where(or_(
                Transaction.note.contains(term, autoescape=True),
                Category.name.contains(term, autoescape=True),
                TransactionType.name.contains(term, autoescape=True),
            ))
        if filters.min_amount is not None:
            query = query.where(Transaction.amount >= filters.min_amount)
        if filters.max_amount is not None:
            query = query.where(Transaction.amount <= filters.max_amount)

        query = query.order_by(*CANONICAL_ORDER)
        return list(
            self.db.execute(self._paginate(query, limit, offset)).scalars().all()
        )
