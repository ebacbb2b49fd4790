"""AccountRepository: concrete implementation of AccountRepositoryProtocol.

All queries use raw text() SQL (no ORM). Every statement is scoped by
user_id, so a foreign account behaves exactly like a missing one.
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pf_account.domain.models import Account
from src.pf_common.datetime_utils import as_utc

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = """
    id, name, color, currency, balance, type,
    stock_symbol, invested_amount, shares, display_order,
    principal, interest_rate, term_months, maturity_date,
    compounding_frequency, early_withdrawal_penalty, withholding_tax_rate,
    cd_created_at
"""

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id = CAST(:account_id AS UUID) AND user_id = :user_id
""")

_LIST_ACCOUNTS_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
    ORDER BY display_order NULLS LAST, created_at
""")

_EXISTS_BY_NAME_SQL = text("""
    SELECT 1
    FROM accounts
    WHERE user_id = :user_id
      AND name = :name
      AND currency = :currency
      AND (CAST(:exclude_id AS UUID) IS NULL OR id <> CAST(:exclude_id AS UUID))
    LIMIT 1
""")

_INSERT_ACCOUNT_SQL = text("""
    INSERT INTO accounts
        (id, user_id, name, color, currency, balance, type,
         stock_symbol, invested_amount, shares, display_order,
         principal, interest_rate, term_months, maturity_date,
         compounding_frequency, early_withdrawal_penalty, withholding_tax_rate,
         cd_created_at)
    VALUES
        (CAST(:id AS UUID), :user_id, :name, :color, :currency, :balance, :type,
         :stock_symbol, :invested_amount, :shares, :display_order,
         :principal, :interest_rate, :term_months, :maturity_date,
         :compounding_frequency, :early_withdrawal_penalty, :withholding_tax_rate,
         :cd_created_at)
""")

_UPDATE_ACCOUNT_SQL = text("""
    UPDATE accounts
    SET name = :name,
        color = :color,
        currency = :currency,
        stock_symbol = :stock_symbol,
        invested_amount = :invested_amount,
        shares = :shares,
        display_order = :display_order,
        principal = :principal,
        interest_rate = :interest_rate,
        term_months = :term_months,
        maturity_date = :maturity_date,
        compounding_frequency = :compounding_frequency,
        early_withdrawal_penalty = :early_withdrawal_penalty,
        withholding_tax_rate = :withholding_tax_rate,
        cd_created_at = :cd_created_at
    WHERE id = CAST(:id AS UUID) AND user_id = :user_id
""")

_UPDATE_BALANCE_SQL = text("""
    UPDATE accounts
    SET balance = :balance
    WHERE id = CAST(:account_id AS UUID) AND user_id = :user_id
""")

_UPDATE_DISPLAY_ORDER_SQL = text("""
    UPDATE accounts
    SET display_order = :display_order
    WHERE id = CAST(:account_id AS UUID) AND user_id = :user_id
""")

_DELETE_ACCOUNT_SQL = text("""
    DELETE FROM accounts
    WHERE id = CAST(:account_id AS UUID) AND user_id = :user_id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _num(value: Decimal | float | None) -> float | None:
    return float(value) if value is not None else None


def _row_to_account(row: Any) -> Account:
    return Account(
        id=str(row.id),
        name=row.name,
        color=row.color,
        currency=row.currency,
        initial_balance=float(row.balance or 0),
        type=row.type,
        stock_symbol=row.stock_symbol,
        invested_amount=_num(row.invested_amount),
        shares=_num(row.shares),
        display_order=row.display_order,
        principal=_num(row.principal),
        interest_rate=_num(row.interest_rate),
        term_months=row.term_months,
        maturity_date=as_utc(row.maturity_date) if row.maturity_date else None,
        compounding_frequency=row.compounding_frequency,
        early_withdrawal_penalty=_num(row.early_withdrawal_penalty),
        withholding_tax_rate=_num(row.withholding_tax_rate),
        cd_created_at=as_utc(row.cd_created_at) if row.cd_created_at else None,
    )


def _account_params(user_id: str, account: Account) -> dict[str, Any]:
    return {
        "id": account.id,
        "user_id": user_id,
        "name": account.name.strip(),
        "color": account.color,
        "currency": account.currency.value,
        "balance": account.balance,
        "type": account.type.value,
        "stock_symbol": account.stock_symbol,
        "invested_amount": account.invested_amount,
        "shares": account.shares,
        "display_order": account.display_order,
        "principal": account.principal,
        "interest_rate": account.interest_rate,
        "term_months": account.term_months,
        "maturity_date": account.maturity_date,
        "compounding_frequency": (
            account.compounding_frequency.value if account.compounding_frequency else None
        ),
        "early_withdrawal_penalty": account.early_withdrawal_penalty,
        "withholding_tax_rate": account.withholding_tax_rate,
        "cd_created_at": account.cd_created_at,
    }


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountRepository:
    async def get_account_by_id(
        self, db: AsyncSession, account_id: str, user_id: str
    ) -> Account | None:
        result = await db.execute(
            _GET_ACCOUNT_SQL, {"account_id": account_id, "user_id": user_id}
        )
        row = result.fetchone()
        return _row_to_account(row) if row is not None else None

    async def list_accounts_by_user(self, db: AsyncSession, user_id: str) -> list[Account]:
        result = await db.execute(_LIST_ACCOUNTS_SQL, {"user_id": user_id})
        return [_row_to_account(row) for row in result.fetchall()]

    async def exists_by_name_and_currency(
        self,
        db: AsyncSession,
        user_id: str,
        name: str,
        currency: str,
        exclude_id: str | None = None,
    ) -> bool:
        result = await db.execute(
            _EXISTS_BY_NAME_SQL,
            {
                "user_id": user_id,
                "name": name.strip(),
                "currency": currency,
                "exclude_id": exclude_id,
            },
        )
        return result.fetchone() is not None

    async def create(self, db: AsyncSession, user_id: str, account: Account) -> None:
        await db.execute(_INSERT_ACCOUNT_SQL, _account_params(user_id, account))

    async def update(self, db: AsyncSession, user_id: str, account: Account) -> None:
        params = _account_params(user_id, account)
        params.pop("balance")  # balance only moves through update_balance
        params.pop("type")
        await db.execute(_UPDATE_ACCOUNT_SQL, params)

    async def update_balance(
        self, db: AsyncSession, account_id: str, user_id: str, balance: float
    ) -> None:
        await db.execute(
            _UPDATE_BALANCE_SQL,
            {"account_id": account_id, "user_id": user_id, "balance": balance},
        )

    async def update_display_orders(
        self, db: AsyncSession, user_id: str, account_ids: list[str]
    ) -> None:
        """Position in `account_ids` becomes the display order (0-based)."""
        await db.execute(
            _UPDATE_DISPLAY_ORDER_SQL,
            [
                {"account_id": account_id, "user_id": user_id, "display_order": index}
                for index, account_id in enumerate(account_ids)
            ],
        )

    async def delete(self, db: AsyncSession, account_id: str, user_id: str) -> None:
        await db.execute(
            _DELETE_ACCOUNT_SQL, {"account_id": account_id, "user_id": user_id}
        )
