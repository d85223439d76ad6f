"""
Tests for the TransactionService.
"""

from datetime import date
from decimal import Decimal

import pydantic
import pytest

from fintrack.errors import NotFoundError, ValidationError
from fintrack.schemas.transaction import (
    TransactionCreate,
    TransactionUpdate,
    TransactionFilters,
)
from fintrack.services.transaction_service import TransactionService


def txn_request(**overrides):
    values = dict(
        type_id="expense",
        category_id="food__dining",
        currency_id="usd",
        amount=Decimal("42.50"),
        date=date(2024, 5, 10),
        note="Groceries",
    )
    values.update(overrides)
    return TransactionCreate(**values)


# --- Create ---

class TestCreate:

    def test_create_succeeds(self, reference_data):
        service = TransactionService(reference_data)
        txn = service.create(txn_request())
        reference_data.commit()

        assert len(txn.id) == 36
        assert txn.amount == Decimal("42.50")
        assert txn.type.name == "Expense"
        assert txn.settlement_id is None

    def test_unknown_category_rejected(self, reference_data):
        service = TransactionService(reference_data)
        with pytest.raises(ValidationError, match="Category 'nope' does not exist"):
            service.create(txn_request(category_id="nope"))

    def test_unknown_type_rejected(self, reference_data):
        service = TransactionService(reference_data)
        with pytest.raises(ValidationError, match="Transaction type"):
            service.create(txn_request(type_id="loan"))

    def test_validation_error_is_a_value_error(self, reference_data):
        service = TransactionService(reference_data)
        with pytest.raises(ValueError):
            service.create(txn_request(currency_id="xyz"))


class TestCreateSchema:

    def test_zero_amount_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            txn_request(amount=Decimal("0"))

    def test_negative_amount_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            txn_request(amount=Decimal("-5.00"))

    def test_amount_above_limit_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            txn_request(amount=Decimal("1000000000"))

    def test_blank_note_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            txn_request(note="   ")

    def test_long_note_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            txn_request(note="x" * 256)

    def test_sql_keyword_in_note_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="Invalid characters"):
            txn_request(note="lunch; DROP table")

    def test_keyword_inside_word_allowed(self):
        assert txn_request(note="Selection of snacks").note == "Selection of snacks"


# --- Update ---

class TestUpdate:

    def test_partial_update(self, reference_data):
        service = TransactionService(reference_data)
        txn = service.create(txn_request())
        reference_data.commit()

        updated = service.update(txn.id, TransactionUpdate(
            amount=Decimal("50.00"), note="Weekly groceries",
        ))
        reference_data.commit()

        assert updated.amount == Decimal("50.00")
        assert updated.note == "Weekly groceries"
        assert updated.category_id == "food__dining"

    def test_empty_update_is_noop(self, reference_data):
        service = TransactionService(reference_data)
        txn = service.create(txn_request())

        assert service.update(txn.id, TransactionUpdate()) is txn

    def test_update_to_unknown_category_rejected(self, reference_data):
        service = TransactionService(reference_data)
        txn = service.create(txn_request())
        reference_data.commit()

        with pytest.raises(ValidationError):
            service.update(txn.id, TransactionUpdate(category_id="missing"))

        reference_data.rollback()
        assert service.get(txn.id).category_id == "food__dining"

    def test_unknown_field_rejected_by_schema(self):
        with pytest.raises(pydantic.ValidationError):
            TransactionUpdate(created_at="2024-01-01T00:00:00")

    def test_update_missing_transaction(self, reference_data):
        service = TransactionService(reference_data)
        with pytest.raises(NotFoundError):
            service.update("missing", TransactionUpdate(note="x"))


# --- Delete ---

class TestDelete:

    def test_delete(self, reference_data):
        service = TransactionService(reference_data)
        txn = service.create(txn_request())
        reference_data.commit()

        service.delete(txn.id)
        reference_data.commit()

        with pytest.raises(NotFoundError):
            service.get(txn.id)

    def test_bulk_delete(self, reference_data):
        service = TransactionService(reference_data)
        ids = [service.create(txn_request()).id for _ in range(3)]
        reference_data.commit()

        service.bulk_delete(ids[:2])
        reference_data.commit()

        assert service.count() == 1


class TestBulkCreate:

    def test_bulk_create_all_or_nothing(self, reference_data):
        service = TransactionService(reference_data)
        service.create(txn_request(note="Existing"))
        reference_data.commit()

        with pytest.raises(ValidationError):
            service.bulk_create([
                txn_request(note="First"),
                txn_request(category_id="missing"),
            ])
        reference_data.commit()

        assert service.count() == 1

    def test_bulk_create_succeeds(self, reference_data):
        service = TransactionService(reference_data)
        created = service.bulk_create([txn_request(), txn_request()])
        reference_data.commit()

        assert len(created) == 2
        assert service.count() == 2


# --- Queries ---

class TestQueries:

    def _seed(self, db):
        service = TransactionService(db)
        service.create(txn_request(date=date(2024, 1, 5), note="Coffee beans"))
        service.create(txn_request(
            date=date(2024, 2, 5), category_id="transportation", note="Train 50%",
        ))
        service.create(txn_request(
            type_id="income", category_id="salary", amount=Decimal("900.00"),
            date=date(2024, 3, 5), note="Paycheck",
        ))
        db.commit()
        return service

    def test_list_most_recent_first(self, reference_data):
        service = self._seed(reference_data)
        notes = [txn.note for txn in service.list_all()]
        assert notes == ["Paycheck", "Train 50%", "Coffee beans"]

    def test_list_with_limit_and_offset(self, reference_data):
        service = self._seed(reference_data)
        notes = [txn.note for txn in service.list_all(limit=1, offset=1)]
        assert notes == ["Train 50%"]

    def test_find_by_date_range(self, reference_data):
        service = self._seed(reference_data)
        rows = service.find_by_date_range(date(2024, 1, 1), date(2024, 2, 28))
        assert {txn.note for txn in rows} == {"Coffee beans", "Train 50%"}

    def test_search_matches_category_name(self, reference_data):
        service = self._seed(reference_data)
        rows = service.search("Transport")
        assert [txn.note for txn in rows] == ["Train 50%"]

    def test_search_escapes_wildcards(self, reference_data):
        service = self._seed(reference_data)
        assert [txn.note for txn in service.search("50%")] == ["Train 50%"]
        assert service.search("_") == []

    def test_filters_combine(self, reference_data):
        service = self._seed(reference_data)
        rows = service.find_with_filters(TransactionFilters(
            type_id="expense", min_amount=Decimal("40.00"), max_amount=Decimal("50.00"),
        ))
        assert len(rows) == 2
