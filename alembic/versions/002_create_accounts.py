"""002: create accounts table

Revision ID: 002
Revises: 001
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            id                          UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id                     VARCHAR(64)     NOT NULL,
            name                        TEXT            NOT NULL,
            color                       VARCHAR(7)      NOT NULL,
            currency                    VARCHAR(3)      NOT NULL,
            balance                     NUMERIC(20, 6)  NOT NULL DEFAULT 0,
            type                        VARCHAR(16)     NOT NULL DEFAULT 'normal',
            stock_symbol                VARCHAR(5),
            invested_amount             NUMERIC(20, 6),
            shares                      NUMERIC(20, 6),
            display_order               INTEGER,
            principal                   NUMERIC(20, 2),
            interest_rate               NUMERIC(5, 2),
            term_months                 INTEGER,
            maturity_date               TIMESTAMPTZ,
            compounding_frequency       VARCHAR(16),
            early_withdrawal_penalty    NUMERIC(5, 2),
            withholding_tax_rate        NUMERIC(5, 2),
            cd_created_at               TIMESTAMPTZ,
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_accounts_user_name_currency   UNIQUE (user_id, name, currency),
            CONSTRAINT ck_accounts_currency
                CHECK (currency IN ('USD', 'MXN', 'COP', 'EUR', 'GBP')),
            CONSTRAINT ck_accounts_type
                CHECK (type IN ('normal', 'investment', 'cd')),
            CONSTRAINT ck_accounts_color                CHECK (color ~ '^#[0-9A-Fa-f]{6}$'),
            CONSTRAINT ck_accounts_shares_gte_0         CHECK (shares IS NULL OR shares >= 0),
            CONSTRAINT ck_accounts_invested_gte_0
                CHECK (invested_amount IS NULL OR invested_amount >= 0),
            CONSTRAINT ck_accounts_display_order_gte_0
                CHECK (display_order IS NULL OR display_order >= 0),
            CONSTRAINT ck_accounts_investment_symbol
                CHECK (type <> 'investment' OR stock_symbol IS NOT NULL),
            CONSTRAINT ck_accounts_compounding
                CHECK (compounding_frequency IS NULL
                       OR compounding_frequency IN ('daily', 'monthly', 'quarterly', 'annually'))
        );
    """)
    op.execute("CREATE INDEX idx_accounts_user_order ON accounts (user_id, display_order);")
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE accounts IS "
        "'Accounts: normal (sum of pockets), investment (shares * price), cd (compound interest)';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
