"""initial schema

Revision ID: 202610160900
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202610160900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "type",
        sa.Column("id", sa.String(length=50), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
    )

    op.create_table(
        "category",
        sa.Column("id", sa.String(length=100), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=7)),
        sa.Column("icon", sa.String(length=50)),
    )

    op.create_table(
        "currency",
        sa.Column("id", sa.String(length=10), primary_key=True),
        sa.Column("code", sa.String(length=3), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("symbol", sa.String(length=10), nullable=False),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("type_id", sa.String(length=50), sa.ForeignKey("type.id"), nullable=False),
        sa.Column(
            "category_id", sa.String(length=100), sa.ForeignKey("category.id"), nullable=False
        ),
        sa.Column(
            "currency_id", sa.String(length=10), sa.ForeignKey("currency.id"), nullable=False
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("settlement_id", sa.String(length=40)),
        sa.Column("recurrence_id", sa.String(length=40)),
        sa.Column("note", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )
    op.create_index("ix_transactions_type_id", "transactions", ["type_id"])
    op.create_index("ix_transactions_category_id", "transactions", ["category_id"])
    op.create_index("ix_transactions_settlement_id", "transactions", ["settlement_id"])
    op.create_index("ix_transactions_date_created", "transactions", ["date", "created_at"])
    op.create_index("ix_transactions_type_date", "transactions", ["type_id", "date"])

    op.create_table(
        "settlement",
        sa.Column("id", sa.String(length=40), primary_key=True),
        sa.Column(
            "compensated_transaction_id",
            sa.String(length=36),
            sa.ForeignKey("transactions.id"),
            nullable=False,
        ),
        sa.Column(
            "compensation_transaction_id",
            sa.String(length=36),
            sa.ForeignKey("transactions.id"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_settlement_amount_positive"),
    )
    op.create_index(
        "ix_settlement_compensated_transaction_id", "settlement", ["compensated_transaction_id"]
    )
    op.create_index(
        "ix_settlement_compensation_transaction_id", "settlement", ["compensation_transaction_id"]
    )


def downgrade():
    op.drop_table("settlement")
    op.drop_table("transactions")
    op.drop_table("currency")
    op.drop_table("category")
    op.drop_table("type")
