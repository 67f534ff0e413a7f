from __future__ import annotations
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "user_balances",
        sa.Column("user_id", sa.Integer(), primary_key=True, autoincrement=False, nullable=False),
        sa.Column("available", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("frozen", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("available >= 0", name="ck_user_balances_available_nonneg"),
        sa.CheckConstraint("frozen >= 0", name="ck_user_balances_frozen_nonneg"),
    )

    op.create_table(
        "withdrawal_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("money", sa.Numeric(12, 2), nullable=False),
        sa.Column("bank_name", sa.String(length=60), nullable=False, server_default=""),
        sa.Column("bank_no", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("payee_name", sa.String(length=60), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("requested_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("settled_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint("points > 0", name="ck_withdrawal_requests_points_pos"),
        sa.CheckConstraint("status IN ('pending', 'settled')", name="ck_withdrawal_requests_status"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_withdrawal_requests_user_id", "withdrawal_requests", ["user_id"])
    op.create_index("ix_withdrawal_requests_status", "withdrawal_requests", ["status"])

    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("points_delta", sa.Integer(), nullable=False),
        sa.Column("remarks", sa.String(length=255), nullable=True),
        sa.Column("ref_withdrawal_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("type", "ref_withdrawal_id", name="uq_ledger_entries_type_ref"),
    )
    op.create_index("ix_ledger_entries_user_id", "ledger_entries", ["user_id"])

    op.create_table(
        "vouchers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("password", sa.String(length=32), nullable=False),
        sa.Column("face_value", sa.Integer(), nullable=False),
        sa.Column("point_value", sa.Integer(), nullable=False),
        sa.Column("sale_status", sa.SmallInteger(), nullable=False, server_default="0"),
        sa.Column("use_status", sa.SmallInteger(), nullable=False, server_default="0"),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("used_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("code", name="uq_vouchers_code"),
    )
    op.create_index("ix_vouchers_created_at", "vouchers", ["created_at"])

def downgrade() -> None:
    op.drop_index("ix_vouchers_created_at", table_name="vouchers")
    op.drop_table("vouchers")
    op.drop_index("ix_ledger_entries_user_id", table_name="ledger_entries")
    op.drop_table("ledger_entries")
    op.drop_index("ix_withdrawal_requests_status", table_name="withdrawal_requests")
    op.drop_index("ix_withdrawal_requests_user_id", table_name="withdrawal_requests")
    op.drop_table("withdrawal_requests")
    op.drop_table("user_balances")
