"""004: create movements table

Revision ID: 004
Revises: 003
Create Date: 2026-10-01

Movement references are nullable and DEFERRABLE INITIALLY DEFERRED:
  - an orphaned movement has account_id/pocket_id/sub_pocket_id = NULL and
    keeps orphaned_* snapshot columns instead
  - during a cascade the pockets are deleted before their movements are
    processed; the check runs at COMMIT, when no dangling reference is left
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE movements (
            id                          UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id                     VARCHAR(64)     NOT NULL,
            type                        VARCHAR(32)     NOT NULL,
            account_id                  UUID
                REFERENCES accounts (id) DEFERRABLE INITIALLY DEFERRED,
            pocket_id                   UUID
                REFERENCES pockets (id) DEFERRABLE INITIALLY DEFERRED,
            sub_pocket_id               UUID
                REFERENCES sub_pockets (id) DEFERRABLE INITIALLY DEFERRED,
            amount                      NUMERIC(20, 6)  NOT NULL,
            notes                       TEXT,
            displayed_date              TIMESTAMPTZ     NOT NULL,
            is_pending                  BOOLEAN         NOT NULL DEFAULT FALSE,
            is_orphaned                 BOOLEAN         NOT NULL DEFAULT FALSE,
            orphaned_account_name       TEXT,
            orphaned_account_currency   VARCHAR(3),
            orphaned_pocket_name        TEXT,
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_movements_type CHECK (type IN (
                'IngresoNormal', 'EgresoNormal', 'IngresoFijo', 'EgresoFijo',
                'InvestmentIngreso', 'InvestmentShares'
            )),
            CONSTRAINT ck_movements_owner CHECK (
                is_orphaned OR (account_id IS NOT NULL AND pocket_id IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_movements_account ON movements (account_id);")
    op.execute("CREATE INDEX idx_movements_pocket ON movements (pocket_id);")
    op.execute(
        "CREATE INDEX idx_movements_orphaned ON movements (user_id) WHERE is_orphaned;"
    )
    op.execute("""
        CREATE TRIGGER trg_movements_updated_at
            BEFORE UPDATE ON movements
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS movements CASCADE;")
