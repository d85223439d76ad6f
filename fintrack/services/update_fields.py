"""
Column allow-lists for dynamic UPDATE statements.

Any partial update passes through build_update_values() before
a statement is built. A field that is not on the table's list
fails the whole update; nothing is silently dropped.
"""

from typing import Any, Mapping

from fintrack.errors import ValidationError


# Columns that may appear in an UPDATE ... SET clause, per table.
UPDATABLE_COLUMNS: dict[str, frozenset[str]] = {
    "transactions": frozenset({
        "type_id",
        "category_id",
        "currency_id",
        "amount",
        "date",
        "note",
        "settlement_id",
        "recurrence_id",
        "updated_at",
    }),
    "category": frozenset({"name", "color", "icon"}),
    "currency": frozenset({"code", "name", "symbol"}),
    "type": frozenset({"name"}),
}


def validate_columns(table_name: str, field_names) -> None:
    """Raise ValidationError unless every field is allowed for the table."""
    allowed = UPDATABLE_COLUMNS.get(table_name)
    if allowed is None:
        raise ValidationError(f"Unknown table: {table_name}")

    for field_name in field_names:
        if field_name not in allowed:
            raise ValidationError(
                f"Invalid column '{field_name}' for table '{table_name}'"
            )


def build_update_values(
    table_name: str, updates: Mapping[str, Any]
) -> dict[str, Any]:
    """
    Return a copy of `updates` that is safe to hand to
    sqlalchemy.update(...).values().

    Values always travel as bound parameters; this check
    guards the column names.
    """
    validate_columns(table_name, updates.keys())
    return dict(updates)
