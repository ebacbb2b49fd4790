"""003: create pockets and sub_pockets tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # No ON DELETE CASCADE: dependents are removed explicitly by the account cascade
    op.execute("""
        CREATE TABLE pockets (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id         VARCHAR(64)     NOT NULL,
            account_id      UUID            NOT NULL REFERENCES accounts (id),
            name            TEXT            NOT NULL,
            type            VARCHAR(16)     NOT NULL,
            balance         NUMERIC(20, 6)  NOT NULL DEFAULT 0,
            currency        VARCHAR(3)      NOT NULL,
            display_order   INTEGER,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_pockets_account_name  UNIQUE (user_id, account_id, name),
            CONSTRAINT ck_pockets_type          CHECK (type IN ('normal', 'fixed'))
        );
    """)
    op.execute("CREATE INDEX idx_pockets_account ON pockets (account_id);")
    op.execute("""
        CREATE TRIGGER trg_pockets_updated_at
            BEFORE UPDATE ON pockets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        CREATE TABLE sub_pockets (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id             VARCHAR(64)     NOT NULL,
            pocket_id           UUID            NOT NULL REFERENCES pockets (id),
            name                TEXT            NOT NULL,
            value_total         NUMERIC(20, 2)  NOT NULL,
            periodicity_months  INTEGER         NOT NULL,
            balance             NUMERIC(20, 6)  NOT NULL DEFAULT 0,
            enabled             BOOLEAN         NOT NULL DEFAULT TRUE,
            display_order       INTEGER,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_sub_pockets_periodicity_gt_0 CHECK (periodicity_months > 0)
        );
    """)
    op.execute("CREATE INDEX idx_sub_pockets_pocket ON sub_pockets (pocket_id);")
    op.execute("""
        CREATE TRIGGER trg_sub_pockets_updated_at
            BEFORE UPDATE ON sub_pockets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS sub_pockets CASCADE;")
    op.execute("DROP TABLE IF EXISTS pockets CASCADE;")
