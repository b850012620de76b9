"""Add order_number — unique, sequence-backed, user-facing order reference.

Revision ID: 002_order_number
Revises: 001_initial
Create Date: 2026-01-20

Retrofits numbering onto an orders table that may already hold rows. Step
order is load-bearing:
    1. create order_number_seq
    2. add order_number as nullable
    3. backfill existing rows from the sequence
    4. SET NOT NULL
    5. unique index
    6. attach nextval('order_number_seq') as the column default
Backfilled numbers are drawn before the default exists, so new inserts can
only receive values the sequence has not handed out yet.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_order_number"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE SEQUENCE IF NOT EXISTS order_number_seq")

    op.add_column(
        "orders",
        sa.Column("order_number", sa.Integer(), nullable=True),
    )

    # Oldest first, so historical numbers follow creation order.
    op.execute(
        """
        WITH numbered AS (
            SELECT id, nextval('order_number_seq') AS n
            FROM (
                SELECT id FROM orders
                WHERE order_number IS NULL
                ORDER BY created_at, id
            ) pending
        )
        UPDATE orders SET order_number = numbered.n
        FROM numbered WHERE orders.id = numbered.id
        """
    )

    op.alter_column("orders", "order_number", nullable=False)

    op.create_index(
        "orders_order_number_idx", "orders", ["order_number"], unique=True,
    )

    op.alter_column(
        "orders", "order_number",
        server_default=sa.text("nextval('order_number_seq')"),
    )


def downgrade() -> None:
    op.alter_column("orders", "order_number", server_default=None)
    op.drop_index("orders_order_number_idx", table_name="orders")
    op.drop_column("orders", "order_number")
    op.execute("DROP SEQUENCE IF EXISTS order_number_seq")
