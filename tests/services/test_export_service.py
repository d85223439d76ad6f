"""
Tests for JSON/CSV export and JSON import.
"""

import csv
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from fintrack.errors import FinTrackError, ValidationError
from fintrack.schemas.settlement import SettlementCreate
from fintrack.schemas.transaction import TransactionCreate
from fintrack.services.export_service import CSV_HEADER, ExportService
from fintrack.services.ledger_service import LedgerService
from fintrack.services.settlement_service import SettlementService
from fintrack.services.transaction_service import TransactionService


def make_txn(db_session, note="Dinner", on=date(2024, 7, 1), amount="20.00",
             type_id="expense"):
    return TransactionService(db_session).create(TransactionCreate(
        type_id=type_id,
        category_id="food__dining",
        currency_id="eur",
        amount=Decimal(amount),
        date=on,
        note=note,
    ))


class TestExportCsv:

    def test_empty_ledger_has_only_header(self, reference_data):
        content = ExportService(reference_data).export_csv()
        assert content == '"ID","Amount","Date","Note","Type","Category","Currency"\n'

    def test_rows_quoted_and_newest_first(self, reference_data):
        make_txn(reference_data, note="Older", on=date(2024, 7, 1))
        make_txn(reference_data, note='Said "thanks"', on=date(2024, 7, 2))
        reference_data.commit()

        content = ExportService(reference_data).export_csv()
        rows = list(csv.reader(StringIO(content)))

        assert rows[0] == CSV_HEADER
        assert rows[1][1:] == ["20.00", "2024-07-02", 'Said "thanks"', "Expense", "Food & Dining", "€"]
        assert rows[2][3] == "Older"
        assert '"Said ""thanks"""' in content


class TestExportJson:

    def test_document_shape(self, reference_data):
        make_txn(reference_data)
        reference_data.commit()

        document = ExportService(reference_data).export_json()

        assert document["version"] == "1.0"
        assert "exportDate" in document
        assert document["meta"] == {"transactionCount": 1, "categoryCount": 10}
        assert len(document["data"]["types"]) == 5
        assert len(document["data"]["currencies"]) == 3
        assert document["data"]["transactions"][0]["amount"] == "20.00"


class TestImportJson:

    def test_round_trip_replaces_transactions(self, reference_data):
        dinner = make_txn(reference_data)
        dinner_id = dinner.id
        refund = make_txn(reference_data, type_id="compensation", note="Refund")
        SettlementService(reference_data).add_settlement(SettlementCreate(
            compensated_transaction_id=dinner.id,
            compensation_transaction_id=refund.id,
            amount=Decimal("5.00"),
        ))
        reference_data.commit()
        service = ExportService(reference_data)
        document = service.export_json()

        make_txn(reference_data, note="Added after backup")
        reference_data.commit()

        counts = service.import_json(document)
        reference_data.commit()

        assert counts["transactions"] == 2
        assert counts["settlements"] == 1
        assert counts["categories"] == 0
        assert TransactionService(reference_data).count() == 2
        assert LedgerService(reference_data).compensation_status(
            dinner_id
        ).remaining_amount == Decimal("15.00")

    def test_missing_version_rejected(self, reference_data):
        with pytest.raises(ValidationError, match="Invalid backup file format"):
            ExportService(reference_data).import_json({"data": {}})

    def test_bad_row_rolls_back_everything(self, reference_data):
        make_txn(reference_data, note="Keep me")
        reference_data.commit()
        document = ExportService(reference_data).export_json()
        document["data"]["categories"].append(
            {"id": "pets", "name": "Pets", "color": "#123456", "icon": "dog"}
        )
        document["data"]["transactions"].append({
            "id": "bad-row",
            "type_id": "expense",
            "category_id": "food__dining",
            "currency_id": "eur",
            "amount": "-3.00",
            "date": "2024-07-03",
            "note": "Negative",
        })

        with pytest.raises(ValidationError, match="Invalid transaction"):
            ExportService(reference_data).import_json(document)
        reference_data.commit()

        notes = [t.note for t in TransactionService(reference_data).list_all()]
        assert notes == ["Keep me"]

    def test_store_failure_rolls_back(self, reference_data):
        make_txn(reference_data, note="Keep me")
        reference_data.commit()
        document = ExportService(reference_data).export_json()
        row = dict(document["data"]["transactions"][0])
        document["data"]["transactions"].append(row)

        with pytest.raises(FinTrackError):
            ExportService(reference_data).import_json(document)
        reference_data.rollback()

        assert TransactionService(reference_data).count() == 1

    def test_new_reference_rows_are_added(self, reference_data):
        document = {
            "version": "1.0",
            "data": {
                "categories": [{"id": "pets", "name": "Pets", "color": "#123456", "icon": "dog"}],
                "currencies": [{"id": "usd", "code": "USD", "name": "Dollar", "symbol": "$"}],
            },
        }

        counts = ExportService(reference_data).import_json(document)
        reference_data.commit()

        assert counts["categories"] == 1
        assert counts["currencies"] == 0
