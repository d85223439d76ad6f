"""
Ledger service: settlement-aware figures.

This service owns the rules that turn stored amounts into
figures the user sees:
1. A transaction's remaining amount is its amount minus every
   settlement against it, floored at zero
2. Totals, balance and the category breakdown are built from
   remaining amounts, never from raw amounts
3. Savings never take part in the balance

Stored amounts are never modified. Every figure is derived
on read from one aggregate of the settlement table, joined
once per query rather than looked up per transaction.
"""

from decimal import Decimal, ROUND_HALF_UP

import structlog
from sqlalchemy import select, func, case, desc
from sqlalchemy.orm import Session

from fintrack.errors import NotFoundError
from fintrack.models.enums import TransactionTypeId, COMPENSATABLE_TYPES
from fintrack.models.reference import Category, Currency, TransactionType
from fintrack.models.settlement import Settlement
from fintrack.models.transaction import Transaction
from fintrack.schemas.ledger import (
    CompensationStatus,
    CategoryExpense,
    LedgerStats,
)
from fintrack.schemas.transaction import (
    TransactionResponse,
    TransactionWithCompensation,
)

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Normalize a driver value (int, float, str, Decimal, None) to 2dp Decimal."""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def type_key(type_id) -> str:
    return type_id.value if isinstance(type_id, TransactionTypeId) else type_id


# Canonical most-recent-first order used for index-addressed access.
CANONICAL_ORDER = (
    Transaction.date.desc(),
    Transaction.created_at.desc(),
    Transaction.id.desc(),
)


def settled_amounts():
    """Per-transaction settlement totals, as a joinable subquery."""
    return (
        select(
            Settlement.compensated_transaction_id.label("transaction_id"),
            func.sum(Settlement.amount).label("compensated_amount"),
        )
        .group_by(Settlement.compensated_transaction_id)
        .subquery("settled")
    )


def round_percentages(amounts: list[Decimal], total: Decimal) -> list[int]:
    """
    Round each share of `total` half-up to a whole percent.

    Half-up rounding can overshoot (12.5 + 12.5 + 75 -> 101).
    When it does, the shares that gained most from rounding
    give back one point each until the sum is at most 100.
    """
    exact = [amount / total * 100 for amount in amounts]
    rounded = [
        int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        for value in exact
    ]
    excess = sum(rounded) - 100
    if excess > 0:
        by_gain = sorted(
            range(len(rounded)),
            key=lambda i: rounded[i] - exact[i],
            reverse=True,
        )
        for i in by_gain[:excess]:
            rounded[i] -= 1
    return rounded


class LedgerService:
    """
    Read-only settlement ledger.

    The service takes a database session as a constructor
    argument. It never writes, so it never commits.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- Shared expressions ---

    @staticmethod
    def _compensated(settled):
        return func.coalesce(settled.c.compensated_amount, 0)

    @classmethod
    def _outstanding(cls, settled):
        # Rounded to cents: SQLite sums NUMERIC columns as REAL.
        return func.round(Transaction.amount - cls._compensated(settled), 2)

    @classmethod
    def _remaining(cls, settled):
        outstanding = cls._outstanding(settled)
        return case((outstanding > 0, outstanding), else_=0)

    @staticmethod
    def _annotate(
        txn: Transaction,
        compensated,
        type_name: str | None = None,
        category_name: str | None = None,
        currency_symbol: str | None = None,
    ) -> TransactionWithCompensation:
        compensated = to_money(compensated)
        remaining = max(ZERO, to_money(txn.amount) - compensated)
        return TransactionWithCompensation(
            **TransactionResponse.model_validate(txn).model_dump(),
            type_name=type_name,
            category_name=category_name,
            currency_symbol=currency_symbol,
            compensated_amount=compensated,
            remaining_amount=remaining,
            is_fully_compensated=remaining <= 0,
        )

    def _annotated_query(self, settled):
        return (
            select(
                Transaction,
                self._compensated(settled),
                TransactionType.name,
                Category.name,
                Currency.symbol,
            )
            .outerjoin(TransactionType, Transaction.type_id == TransactionType.id)
            .outerjoin(Category, Transaction.category_id == Category.id)
            .outerjoin(Currency, Transaction.currency_id == Currency.id)
            .outerjoin(settled, settled.c.transaction_id == Transaction.id)
        )

    # --- Per-transaction figures ---

    def compensation_status(self, transaction_id: str) -> CompensationStatus:
        """
        Return how much of a transaction is still outstanding.

        Raises NotFoundError if the transaction does not exist.
        """
        row = self.db.execute(
            select(
                Transaction.amount,
                func.coalesce(func.sum(Settlement.amount), 0),
            )
            .outerjoin(
                Settlement,
                Settlement.compensated_transaction_id == Transaction.id,
            )
            .where(Transaction.id == transaction_id)
            .group_by(Transaction.id, Transaction.amount)
        ).first()

        if row is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")

        original = to_money(row[0])
        compensated = to_money(row[1])
        remaining = original - compensated

        return CompensationStatus(
            original_amount=original,
            compensated_amount=compensated,
            remaining_amount=max(ZERO, remaining),
            is_fully_compensated=remaining <= 0,
        )

    def annotate_with_compensation(
        self, transactions: list[Transaction]
    ) -> list[TransactionWithCompensation]:
        """
        Attach compensated/remaining amounts to the given transactions.

        Uses a single joined query for the whole batch. The
        input order is preserved.
        """
        if not transactions:
            return []

        settled = settled_amounts()
        ids = [txn.id for txn in transactions]
        rows = self.db.execute(
            self._annotated_query(settled).where(Transaction.id.in_(ids))
        ).all()
        by_id = {row[0].id: row for row in rows}

        return [self._annotate(*by_id.get(txn.id, (txn, None))) for txn in transactions]

    def find_all_with_compensation(
        self, limit: int | None = None, offset: int | None = None
    ) -> list[TransactionWithCompensation]:
        """Return one page of annotated transactions, most recent first."""
        settled = settled_amounts()
        query = self._annotated_query(settled).order_by(*CANONICAL_ORDER)
        if limit is not None:
            query = query.limit(limit)
            if offset is not None:
                query = query.offset(offset)

        rows = self.db.execute(query).all()
        return [self._annotate(*row) for row in rows]

    def list_compensatable(self) -> list[TransactionWithCompensation]:
        """
        Transactions that can still receive a settlement.

        Only income, expense and investment transactions with an
        outstanding amount qualify. Ordered most recent first with
        creation time and id as tiebreakers so pages are stable.
        """
        settled = settled_amounts()
        query = (
            self._annotated_query(settled)
            .where(
                Transaction.type_id.in_([type_key(t) for t in COMPENSATABLE_TYPES]),
                self._outstanding(settled) > 0,
            )
            .order_by(*CANONICAL_ORDER)
        )
        rows = self.db.execute(query).all()
        return [self._annotate(*row) for row in rows]

    # --- Aggregates ---

    def total_by_type(self, type_id) -> Decimal:
        """Sum of remaining amounts for one transaction type."""
        settled = settled_amounts()
        total = self.db.execute(
            select(func.coalesce(func.sum(self._remaining(settled)), 0))
            .select_from(Transaction)
            .outerjoin(settled, settled.c.transaction_id == Transaction.id)
            .where(Transaction.type_id == type_key(type_id))
        ).scalar()
        return to_money(total)

    def balance(self) -> Decimal:
        """
        Income minus expenses, both net of settlements.

        Savings are tracked on their own and never net
        against income or expenses.
        """
        income = self.total_by_type(TransactionTypeId.INCOME)
        expenses = self.total_by_type(TransactionTypeId.EXPENSE)
        return income - expenses

    def expenses_by_category(self) -> list[CategoryExpense]:
        """
        Net expense per category with its share of the total.

        Categories whose expenses are fully reimbursed drop out.
        Returns an empty list when there is nothing to show.
        """
        settled = settled_amounts()
        amount = func.round(func.sum(self._remaining(settled)), 2)
        rows = self.db.execute(
            select(
                Category.name,
                Category.color,
                amount.label("amount"),
            )
            .select_from(Transaction)
            .outerjoin(Category, Transaction.category_id == Category.id)
            .outerjoin(settled, settled.c.transaction_id == Transaction.id)
            .where(Transaction.type_id == TransactionTypeId.EXPENSE.value)
            .group_by(Transaction.category_id, Category.name, Category.color)
            .having(amount > 0)
            .order_by(desc("amount"))
        ).all()

        amounts = [to_money(row.amount) for row in rows]
        total = sum(amounts, ZERO)
        if total <= 0:
            return []

        percentages = round_percentages(amounts, total)
        logger.debug(
            "expenses_by_category_computed",
            categories=len(rows),
            total=str(total),
        )

        return [
            CategoryExpense(
                category_name=row.name,
                category_color=row.color,
                amount=value,
                percentage=pct,
            )
            for row, value, pct in zip(rows, amounts, percentages)
        ]

    def count_transactions(self) -> int:
        return self.db.execute(
            select(func.count()).select_from(Transaction)
        ).scalar_one()

    def stats(self) -> LedgerStats:
        """Headline numbers for the settings/about screen."""
        categories = self.db.execute(
            select(func.count()).select_from(Category)
        ).scalar_one()
        return LedgerStats(
            transactions=self.count_transactions(),
            categories=categories,
            total_income=self.total_by_type(TransactionTypeId.INCOME),
            total_expenses=self.total_by_type(TransactionTypeId.EXPENSE),
        )
