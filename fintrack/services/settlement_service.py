"""
Settlement service: records reimbursements.

A settlement links a compensation transaction to the
transaction it offsets. Writes only check that both sides
exist and differ; a settlement may push the compensated
total past the original amount. That case is logged and
readers clamp the remaining amount at zero.
"""

from decimal import Decimal

import structlog
from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fintrack.errors import NotFoundError, ValidationError, translate_store_error
from fintrack.models.base import atomic
from fintrack.models.enums import TransactionTypeId
from fintrack.models.settlement import Settlement
from fintrack.models.transaction import Transaction
from fintrack.schemas.settlement import CompensationCreate, SettlementCreate
from fintrack.schemas.transaction import TransactionCreate
from fintrack.services.transaction_service import TransactionService
from fintrack.services.update_fields import build_update_values

logger = structlog.get_logger(__name__)


class SettlementService:

    def __init__(self, db: Session):
        self.db = db

    def _flush(self) -> None:
        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            raise translate_store_error(exc) from exc

    def _require_transaction(self, transaction_id: str) -> Transaction:
        txn = self.db.get(Transaction, transaction_id)
        if txn is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return txn

    def _settled_total(self, transaction_id: str) -> Decimal:
        total = self.db.execute(
            select(func.coalesce(func.sum(Settlement.amount), 0))
            .where(Settlement.compensated_transaction_id == transaction_id)
        ).scalar()
        return Decimal(str(total))

    def add_settlement(self, request: SettlementCreate) -> Settlement:
        """
        Settle part of one transaction with another.

        Raises NotFoundError if either transaction is missing and
        ValidationError if both ids name the same transaction.
        """
        if request.compensated_transaction_id == request.compensation_transaction_id:
            raise ValidationError("A transaction cannot settle itself")

        compensated = self._require_transaction(request.compensated_transaction_id)
        self._require_transaction(request.compensation_transaction_id)

        already_settled = self._settled_total(compensated.id)
        if already_settled + request.amount > compensated.amount:
            logger.warning(
                "settlement_exceeds_amount",
                transaction_id=compensated.id,
                original_amount=str(compensated.amount),
                settled_amount=str(already_settled + request.amount),
            )

        settlement = Settlement(**request.model_dump())
        self.db.add(settlement)
        self._flush()

        logger.info(
            "settlement_added",
            settlement_id=settlement.id,
            compensated_transaction_id=settlement.compensated_transaction_id,
            amount=str(settlement.amount),
        )
        return settlement

    def record_compensation(self, request: CompensationCreate) -> Settlement:
        """
        Create a compensation transaction and settle it against
        an existing one.

        Both rows are written together or not at all. The new
        transaction carries the settlement id.
        """
        self._require_transaction(request.compensated_transaction_id)

        with atomic(self.db):
            compensation = TransactionService(self.db).create(TransactionCreate(
                type_id=TransactionTypeId.COMPENSATION.value,
                category_id=request.category_id,
                currency_id=request.currency_id,
                amount=request.amount,
                date=request.date,
                note=request.note,
            ))
            settlement = self.add_settlement(SettlementCreate(
                compensated_transaction_id=request.compensated_transaction_id,
                compensation_transaction_id=compensation.id,
                amount=request.amount,
            ))
            compensation.settlement_id = settlement.id
            self._flush()

        return settlement

    def get(self, settlement_id: str) -> Settlement:
        settlement = self.db.get(Settlement, settlement_id)
        if not settlement:
            raise NotFoundError(f"Settlement {settlement_id} not found")
        return settlement

    def list_for_transaction(self, transaction_id: str) -> list[Settlement]:
        """Settlements where the transaction is on either side, oldest first."""
        return list(self.db.execute(
            select(Settlement)
            .where(or_(
                Settlement.compensated_transaction_id == transaction_id,
                Settlement.compensation_transaction_id == transaction_id,
            ))
            .order_by(Settlement.created_at, Settlement.id)
        ).scalars().all())

    def delete(self, settlement_id: str) -> None:
        """Remove a settlement and unlink its compensation transaction."""
        self.get(settlement_id)
        try:
            self.db.execute(
                update(Transaction)
                .where(Transaction.settlement_id == settlement_id)
                .values(**build_update_values("transactions", {"settlement_id": None}))
            )
            self.db.execute(delete(Settlement).where(Settlement.id == settlement_id))
        except SQLAlchemyError as exc:
            raise translate_store_error(exc) from exc
        self._flush()
        logger.info("settlement_deleted", settlement_id=settlement_id)
