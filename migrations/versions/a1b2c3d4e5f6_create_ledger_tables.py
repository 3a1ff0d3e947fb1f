"""create daily ledger, supplier, inventory and cash deposit tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

line_category = sa.Enum(
    "MATERIALS", "LABOR", "EQUIPMENT", "TRANSPORT", "FOOD", "OTHER",
    name="linecategory",
)
payment_method = sa.Enum("CASH", "SUPPLIER", name="paymentmethod")


def upgrade() -> None:
    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("total_deposited", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("total_spent", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("current_balance", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("current_balance >= 0", name="ck_suppliers_balance_non_negative"),
    )

    op.create_table(
        "supplier_deposits",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("supplier_id", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("reference", sa.String(length=100), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_supplier_deposits_supplier_id"), "supplier_deposits", ["supplier_id"], unique=False)

    op.create_table(
        "cash_deposits",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("project_id", sa.String(length=64), nullable=False),
        sa.Column("amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("method", sa.String(length=50), nullable=False),
        sa.Column("reference", sa.String(length=100), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_cash_deposits_project_id"), "cash_deposits", ["project_id"], unique=False)
    op.create_index(op.f("ix_cash_deposits_date"), "cash_deposits", ["date"], unique=False)

    op.create_table(
        "daily_ledgers",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("project_id", sa.String(length=64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("opening_cash", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("closing_cash", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("total_cash_spent", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("total_supplier_spent", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "date", name="uq_daily_ledgers_project_date"),
    )
    op.create_index(op.f("ix_daily_ledgers_project_id"), "daily_ledgers", ["project_id"], unique=False)

    op.create_table(
        "daily_ledger_lines",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("ledger_id", sa.String(length=20), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("item", sa.String(length=255), nullable=False),
        sa.Column("category", line_category, nullable=False),
        sa.Column("amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("payment_method", payment_method, nullable=False),
        sa.Column("quantity", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("unit", sa.String(length=30), nullable=True),
        sa.Column("supplier_id", sa.String(length=20), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["ledger_id"], ["daily_ledgers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_daily_ledger_lines_ledger_id"), "daily_ledger_lines", ["ledger_id"], unique=False)

    op.create_table(
        "supplier_purchases",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("supplier_id", sa.String(length=20), nullable=False),
        sa.Column("project_id", sa.String(length=64), nullable=False),
        sa.Column("amount", sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column("item", sa.String(length=255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("ledger_id", sa.String(length=20), nullable=True),
        sa.Column("ledger_line_id", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"]),
        sa.ForeignKeyConstraint(["ledger_id"], ["daily_ledgers.id"]),
        sa.ForeignKeyConstraint(["ledger_line_id"], ["daily_ledger_lines.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_supplier_purchases_supplier_id"), "supplier_purchases", ["supplier_id"], unique=False)
    op.create_index(op.f("ix_supplier_purchases_project_id"), "supplier_purchases", ["project_id"], unique=False)
    op.create_index(op.f("ix_supplier_purchases_ledger_id"), "supplier_purchases", ["ledger_id"], unique=False)
    op.create_index(op.f("ix_supplier_purchases_ledger_line_id"), "supplier_purchases", ["ledger_line_id"], unique=False)

    op.create_table(
        "inventory_receipts",
        sa.Column("id", sa.String(length=20), nullable=False),
        sa.Column("project_id", sa.String(length=64), nullable=False),
        sa.Column("item", sa.String(length=255), nullable=False),
        sa.Column("unit", sa.String(length=30), nullable=True),
        sa.Column("quantity", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("quantity_used", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("quantity_remaining", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("delivery_date", sa.Date(), nullable=False),
        sa.Column("ledger_id", sa.String(length=20), nullable=True),
        sa.Column("ledger_line_id", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["ledger_id"], ["daily_ledgers.id"]),
        sa.ForeignKeyConstraint(["ledger_line_id"], ["daily_ledger_lines.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_inventory_receipts_project_id"), "inventory_receipts", ["project_id"], unique=False)
    op.create_index(op.f("ix_inventory_receipts_ledger_id"), "inventory_receipts", ["ledger_id"], unique=False)
    op.create_index(op.f("ix_inventory_receipts_ledger_line_id"), "inventory_receipts", ["ledger_line_id"], unique=False)


def downgrade() -> None:
    op.drop_table("inventory_receipts")
    op.drop_table("supplier_purchases")
    op.drop_table("daily_ledger_lines")
    op.drop_table("daily_ledgers")
    op.drop_table("cash_deposits")
    op.drop_table("supplier_deposits")
    op.drop_table("suppliers")

    payment_method.drop(op.get_bind(), checkfirst=True)
    line_category.drop(op.get_bind(), checkfirst=True)
