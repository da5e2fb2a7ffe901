"""customers, rewards, used_qr_codes and transactions ledger tables

Revision ID: 4d1e7a2c9b30
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4d1e7a2c9b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(bind, table_name: str) -> bool:
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    bind = op.get_bind()

    if not _table_exists(bind, "customers"):
        op.create_table(
            "customers",
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("display_name", sa.String(length=100), nullable=False, server_default=""),
            sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), nullable=True),
            sa.CheckConstraint("points >= 0", name="ck_customers_points_non_negative"),
        )

    if not _table_exists(bind, "rewards"):
        op.create_table(
            "rewards",
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("description", sa.String(length=255), nullable=True),
            sa.Column("points_cost", sa.Integer(), nullable=False),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.TIMESTAMP(), nullable=True),
        )

    if not _table_exists(bind, "used_qr_codes"):
        op.create_table(
            "used_qr_codes",
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("qr_token", sa.String(length=200), nullable=False),
            sa.Column("customer_id", sa.Uuid(as_uuid=True), sa.ForeignKey("customers.id"), nullable=False),
            sa.Column("amount_spent", sa.Numeric(10, 2), nullable=False),
            sa.Column("points_awarded", sa.Integer(), nullable=False),
            sa.Column("used_at", sa.TIMESTAMP(), nullable=False),
            sa.UniqueConstraint("qr_token", name="uq_used_qr_codes_qr_token"),
        )

    if not _table_exists(bind, "transactions"):
        op.create_table(
            "transactions",
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("customer_id", sa.Uuid(as_uuid=True), sa.ForeignKey("customers.id"), nullable=False),
            sa.Column("points_change", sa.Integer(), nullable=False),
            sa.Column("description", sa.String(length=255), nullable=False),
            sa.Column("qr_token", sa.String(length=200), nullable=True, unique=True),
            sa.Column("reward_id", sa.Uuid(as_uuid=True), sa.ForeignKey("rewards.id"), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), nullable=False),
        )
        op.create_index(
            "ix_transactions_customer_created",
            "transactions",
            ["customer_id", "created_at"],
        )


def downgrade() -> None:
    bind = op.get_bind()

    if _table_exists(bind, "transactions"):
        op.drop_index("ix_transactions_customer_created", table_name="transactions")
        op.drop_table("transactions")

    for table_name in ("used_qr_codes", "rewards", "customers"):
        if _table_exists(bind, table_name):
            op.drop_table(table_name)
