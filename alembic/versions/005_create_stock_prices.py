"""005: create stock_prices table

Revision ID: 005
Revises: 004
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Shared across users: one row per symbol
    op.execute("""
        CREATE TABLE stock_prices (
            symbol          VARCHAR(5)      PRIMARY KEY,
            price           NUMERIC(20, 6)  NOT NULL,
            currency        VARCHAR(3)      NOT NULL DEFAULT 'USD',
            last_updated    TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_stock_prices_price_gte_0 CHECK (price >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_stock_prices_last_updated ON stock_prices (last_updated);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS stock_prices CASCADE;")
