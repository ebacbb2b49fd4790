"""Pocket and SubPocket repositories: raw text() SQL, caller owns the transaction."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pf_common.datetime_utils import as_utc
from src.pf_common.enums import PocketType
from src.pf_pocket.domain.models import Pocket, SubPocket

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_FIND_POCKETS_BY_ACCOUNT_SQL = text("""
    SELECT id, account_id, name, type, balance, currency, display_order, created_at
    FROM pockets
    WHERE account_id = CAST(:account_id AS UUID) AND user_id = :user_id
    ORDER BY display_order NULLS LAST, created_at
""")

_DELETE_POCKET_SQL = text("""
    DELETE FROM pockets
    WHERE id = CAST(:pocket_id AS UUID) AND user_id = :user_id
""")

_FIND_SUB_POCKETS_BY_POCKET_SQL = text("""
    SELECT id, pocket_id, name, value_total, periodicity_months,
           balance, enabled, display_order
    FROM sub_pockets
    WHERE pocket_id = CAST(:pocket_id AS UUID) AND user_id = :user_id
    ORDER BY display_order NULLS LAST, created_at
""")

_DELETE_SUB_POCKET_SQL = text("""
    DELETE FROM sub_pockets
    WHERE id = CAST(:sub_pocket_id AS UUID) AND user_id = :user_id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_pocket(row: Any) -> Pocket:
    return Pocket(
        id=str(row.id),
        account_id=str(row.account_id),
        name=row.name,
        type=PocketType(row.type),
        balance=float(row.balance or 0),
        currency=row.currency,
        display_order=row.display_order,
        created_at=as_utc(row.created_at) if row.created_at else None,
    )


def _row_to_sub_pocket(row: Any) -> SubPocket:
    return SubPocket(
        id=str(row.id),
        pocket_id=str(row.pocket_id),
        name=row.name,
        value_total=float(row.value_total),
        periodicity_months=row.periodicity_months,
        balance=float(row.balance or 0),
        enabled=bool(row.enabled),
        display_order=row.display_order,
    )


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class PocketRepository:
    async def find_by_account_id(
        self, db: AsyncSession, account_id: str, user_id: str
    ) -> list[Pocket]:
        result = await db.execute(
            _FIND_POCKETS_BY_ACCOUNT_SQL, {"account_id": account_id, "user_id": user_id}
        )
        return [_row_to_pocket(row) for row in result.fetchall()]

    async def delete(self, db: AsyncSession, pocket_id: str, user_id: str) -> None:
        await db.execute(_DELETE_POCKET_SQL, {"pocket_id": pocket_id, "user_id": user_id})


class SubPocketRepository:
    async def find_by_pocket_id(
        self, db: AsyncSession, pocket_id: str, user_id: str
    ) -> list[SubPocket]:
        result = await db.execute(
            _FIND_SUB_POCKETS_BY_POCKET_SQL, {"pocket_id": pocket_id, "user_id": user_id}
        )
        return [_row_to_sub_pocket(row) for row in result.fetchall()]

    async def delete(self, db: AsyncSession, sub_pocket_id: str, user_id: str) -> None:
        await db.execute(
            _DELETE_SUB_POCKET_SQL, {"sub_pocket_id": sub_pocket_id, "user_id": user_id}
        )
