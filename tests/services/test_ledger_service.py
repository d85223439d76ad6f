"""
Tests for the LedgerService.

Tests cover:
- Compensation status for partial, full and over-settlement
- Compensatable transaction listing
- Totals, balance and category breakdown net of settlements
- Percentage rounding
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import event, select

from fintrack.errors import NotFoundError
from fintrack.models.enums import TransactionTypeId
from fintrack.models.transaction import Transaction
from fintrack.schemas.settlement import SettlementCreate
from fintrack.schemas.transaction import TransactionCreate
from fintrack.services.ledger_service import LedgerService, round_percentages
from fintrack.services.settlement_service import SettlementService
from fintrack.services.transaction_service import TransactionService


def make_txn(db_session, type_id="expense", amount="100.00",
             category_id="food__dining", on=date(2024, 3, 1), note="Dinner"):
    return TransactionService(db_session).create(TransactionCreate(
        type_id=type_id,
        category_id=category_id,
        currency_id="usd",
        amount=Decimal(amount),
        date=on,
        note=note,
    ))


def settle(db_session, compensated, amount):
    compensation = make_txn(
        db_session, type_id="compensation", amount=amount, note="Paid back"
    )
    return SettlementService(db_session).add_settlement(SettlementCreate(
        compensated_transaction_id=compensated.id,
        compensation_transaction_id=compensation.id,
        amount=Decimal(amount),
    ))


# --- Compensation Status ---

class TestCompensationStatus:

    def test_partial_settlement(self, reference_data):
        db = reference_data
        dinner = make_txn(db)
        settle(db, dinner, "40.00")
        db.commit()

        status = LedgerService(db).compensation_status(dinner.id)

        assert status.original_amount == Decimal("100.00")
        assert status.compensated_amount == Decimal("40.00")
        assert status.remaining_amount == Decimal("60.00")
        assert status.is_fully_compensated is False

    def test_over_settlement_clamps_at_zero(self, reference_data):
        db = reference_data
        dinner = make_txn(db)
        settle(db, dinner, "60.00")
        settle(db, dinner, "50.00")
        db.commit()

        status = LedgerService(db).compensation_status(dinner.id)

        assert status.compensated_amount == Decimal("110.00")
        assert status.remaining_amount == Decimal("0.00")
        assert status.is_fully_compensated is True

    def test_unsettled_transaction(self, reference_data):
        dinner = make_txn(reference_data)

        status = LedgerService(reference_data).compensation_status(dinner.id)

        assert status.compensated_amount == Decimal("0.00")
        assert status.remaining_amount == Decimal("100.00")
        assert status.is_fully_compensated is False

    def test_unknown_transaction_raises(self, reference_data):
        with pytest.raises(NotFoundError, match="not found"):
            LedgerService(reference_data).compensation_status("missing")


# --- Compensatable Listing ---

class TestListCompensatable:

    def test_excludes_fully_settled_and_other_types(self, reference_data):
        db = reference_data
        open_expense = make_txn(db, on=date(2024, 3, 2))
        settled_expense = make_txn(db, amount="30.00", on=date(2024, 3, 3))
        settle(db, settled_expense, "30.00")
        make_txn(db, type_id="savings", category_id="savings", note="Rainy day")
        db.commit()

        rows = LedgerService(db).list_compensatable()
        ids = [row.id for row in rows]

        assert open_expense.id in ids
        assert settled_expense.id not in ids
        assert all(row.type_id in ("income", "expense", "investment") for row in rows)

    def test_most_recent_first(self, reference_data):
        db = reference_data
        older = make_txn(db, on=date(2024, 1, 1))
        newer = make_txn(db, on=date(2024, 2, 1))
        db.commit()

        rows = LedgerService(db).list_compensatable()

        assert [row.id for row in rows] == [newer.id, older.id]

    def test_settled_in_cents_that_do_not_sum_exactly(self, reference_data):
        db = reference_data
        coffee = make_txn(db, amount="0.80", note="Coffee")
        settle(db, coffee, "0.70")
        settle(db, coffee, "0.10")
        db.commit()

        ids = [row.id for row in LedgerService(db).list_compensatable()]

        assert coffee.id not in ids

    def test_rows_carry_remaining_amount(self, reference_data):
        db = reference_data
        dinner = make_txn(db)
        settle(db, dinner, "25.00")
        db.commit()

        row = next(r for r in LedgerService(db).list_compensatable() if r.id == dinner.id)

        assert row.remaining_amount == Decimal("75.00")
        assert row.category_name == "Food & Dining"


# --- Annotation ---

class TestAnnotation:

    def test_annotate_preserves_order(self, reference_data):
        db = reference_data
        first = make_txn(db, amount="10.00")
        second = make_txn(db, amount="20.00")
        settle(db, second, "5.00")
        db.commit()

        rows = LedgerService(db).annotate_with_compensation([second, first])

        assert [row.id for row in rows] == [second.id, first.id]
        assert rows[0].remaining_amount == Decimal("15.00")
        assert rows[1].remaining_amount == Decimal("10.00")

    def test_annotate_uses_one_query(self, reference_data):
        db = reference_data
        for category_id in ("food__dining", "transportation", "shopping"):
            make_txn(db, category_id=category_id)
        db.commit()
        db.expire_all()
        transactions = db.execute(select(Transaction)).scalars().all()

        statements = []

        def count(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        engine = db.get_bind()
        event.listen(engine, "before_cursor_execute", count)
        try:
            rows = LedgerService(db).annotate_with_compensation(transactions)
        finally:
            event.remove(engine, "before_cursor_execute", count)

        assert len(statements) == 1
        assert {row.category_name for row in rows} == {
            "Food & Dining", "Transportation", "Shopping",
        }

    def test_annotate_empty_list(self, reference_data):
        assert LedgerService(reference_data).annotate_with_compensation([]) == []

    def test_find_all_with_compensation_pages(self, reference_data):
        db = reference_data
        for day in range(1, 6):
            make_txn(db, on=date(2024, 1, day))
        db.commit()

        page = LedgerService(db).find_all_with_compensation(limit=2, offset=1)

        assert [row.date for row in page] == [date(2024, 1, 4), date(2024, 1, 3)]


# --- Totals and Balance ---

class TestTotals:

    def test_total_by_type_is_net_of_settlements(self, reference_data):
        db = reference_data
        dinner = make_txn(db, amount="100.00")
        make_txn(db, amount="50.00")
        settle(db, dinner, "40.00")
        db.commit()

        total = LedgerService(db).total_by_type(TransactionTypeId.EXPENSE)

        assert total == Decimal("110.00")

    def test_over_settled_transaction_counts_as_zero(self, reference_data):
        db = reference_data
        dinner = make_txn(db, amount="100.00")
        make_txn(db, amount="20.00")
        settle(db, dinner, "150.00")
        db.commit()

        assert LedgerService(db).total_by_type("expense") == Decimal("20.00")

    def test_balance_ignores_savings(self, reference_data):
        db = reference_data
        make_txn(db, type_id="income", amount="1000.00", category_id="salary", note="Pay")
        make_txn(db, amount="300.00")
        make_txn(db, type_id="savings", amount="200.00", category_id="savings", note="Save")
        db.commit()

        assert LedgerService(db).balance() == Decimal("700.00")

    def test_balance_of_empty_ledger_is_zero(self, reference_data):
        assert LedgerService(reference_data).balance() == Decimal("0.00")

    def test_stats(self, reference_data):
        db = reference_data
        make_txn(db, type_id="income", amount="500.00", category_id="salary", note="Pay")
        make_txn(db, amount="120.00")
        db.commit()

        stats = LedgerService(db).stats()

        assert stats.transactions == 2
        assert stats.categories == 10
        assert stats.total_income == Decimal("500.00")
        assert stats.total_expenses == Decimal("120.00")


# --- Expenses by Category ---

class TestExpensesByCategory:

    def test_empty_when_no_expenses(self, reference_data):
        assert LedgerService(reference_data).expenses_by_category() == []

    def test_breakdown_is_net_and_sorted(self, reference_data):
        db = reference_data
        make_txn(db, amount="75.00", category_id="food__dining")
        make_txn(db, amount="25.00", category_id="transportation", note="Bus")
        db.commit()

        rows = LedgerService(db).expenses_by_category()

        assert [row.category_name for row in rows] == ["Food & Dining", "Transportation"]
        assert [row.amount for row in rows] == [Decimal("75.00"), Decimal("25.00")]
        assert [row.percentage for row in rows] == [75, 25]
        assert rows[0].category_color == "#FF6B6B"

    def test_fully_reimbursed_category_drops_out(self, reference_data):
        db = reference_data
        make_txn(db, amount="80.00")
        taxi = make_txn(db, amount="20.00", category_id="transportation", note="Taxi")
        settle(db, taxi, "20.00")
        db.commit()

        rows = LedgerService(db).expenses_by_category()

        assert [row.category_name for row in rows] == ["Food & Dining"]
        assert rows[0].percentage == 100

    def test_category_settled_in_cents_drops_out(self, reference_data):
        db = reference_data
        coffee = make_txn(db, amount="0.80", note="Coffee")
        settle(db, coffee, "0.70")
        settle(db, coffee, "0.10")
        make_txn(db, amount="50.00", category_id="shopping", note="Shoes")
        db.commit()

        rows = LedgerService(db).expenses_by_category()

        assert [row.category_name for row in rows] == ["Shopping"]
        assert rows[0].percentage == 100

    def test_category_totals_exclude_cent_drift(self, reference_data):
        db = reference_data
        coffee = make_txn(db, amount="0.80", note="Coffee")
        settle(db, coffee, "0.70")
        settle(db, coffee, "0.10")
        db.commit()

        assert LedgerService(db).total_by_type("expense") == Decimal("0.00")

    def test_income_is_not_included(self, reference_data):
        db = reference_data
        make_txn(db, type_id="income", amount="900.00", category_id="salary", note="Pay")
        make_txn(db, amount="10.00")
        db.commit()

        rows = LedgerService(db).expenses_by_category()

        assert len(rows) == 1
        assert rows[0].amount == Decimal("10.00")


class TestRoundPercentages:

    def test_exact_shares(self):
        assert round_percentages(
            [Decimal("50"), Decimal("30"), Decimal("20")], Decimal("100")
        ) == [50, 30, 20]

    def test_half_up_overflow_is_corrected(self):
        shares = round_percentages(
            [Decimal("1"), Decimal("1"), Decimal("6")], Decimal("8")
        )
        # 12.5, 12.5, 75 would round to 101
        assert sum(shares) == 100
        assert shares[2] == 75

    def test_never_exceeds_hundred(self):
        amounts = [Decimal("1")] * 7
        assert sum(round_percentages(amounts, Decimal("7"))) <= 100
