"""MovementRepository: raw text() SQL, caller owns the transaction.

Orphaning keeps the row but detaches it: account_id/pocket_id/sub_pocket_id
become NULL and a name/currency snapshot is stored instead. The movement FKs
are DEFERRABLE INITIALLY DEFERRED, so inside a cascade the pockets can go
first while their movements are still being processed.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pf_common.datetime_utils import as_utc
from src.pf_movement.domain.models import Movement

_FIND_BY_ACCOUNT_SQL = text("""
    SELECT id, account_id, pocket_id, sub_pocket_id, type, amount, notes,
           displayed_date, is_pending, is_orphaned,
           orphaned_account_name, orphaned_account_currency, orphaned_pocket_name
    FROM movements
    WHERE account_id = CAST(:account_id AS UUID) AND user_id = :user_id
    ORDER BY displayed_date, id
""")

_DELETE_SQL = text("""
    DELETE FROM movements
    WHERE id = CAST(:movement_id AS UUID) AND user_id = :user_id
""")

_MARK_ORPHANED_SQL = text("""
    UPDATE movements
    SET is_orphaned = TRUE,
        account_id = NULL,
        pocket_id = NULL,
        sub_pocket_id = NULL,
        orphaned_account_name = :account_name,
        orphaned_account_currency = :account_currency,
        orphaned_pocket_name = :pocket_name
    WHERE id = CAST(:movement_id AS UUID) AND user_id = :user_id
""")


def _row_to_movement(row: Any) -> Movement:
    return Movement(
        id=str(row.id),
        account_id=str(row.account_id),
        pocket_id=str(row.pocket_id),
        sub_pocket_id=str(row.sub_pocket_id) if row.sub_pocket_id else None,
        type=row.type,
        amount=float(row.amount),
        notes=row.notes,
        displayed_date=as_utc(row.displayed_date),
        is_pending=bool(row.is_pending),
        is_orphaned=bool(row.is_orphaned),
        orphaned_account_name=row.orphaned_account_name,
        orphaned_account_currency=row.orphaned_account_currency,
        orphaned_pocket_name=row.orphaned_pocket_name,
    )


class MovementRepository:
    async def find_by_account_id(
        self, db: AsyncSession, account_id: str, user_id: str
    ) -> list[Movement]:
        result = await db.execute(
            _FIND_BY_ACCOUNT_SQL, {"account_id": account_id, "user_id": user_id}
        )
        return [_row_to_movement(row) for row in result.fetchall()]

    async def delete(self, db: AsyncSession, movement_id: str, user_id: str) -> None:
        await db.execute(_DELETE_SQL, {"movement_id": movement_id, "user_id": user_id})

    async def mark_as_orphaned(
        self,
        db: AsyncSession,
        movement_id: str,
        account_name: str,
        account_currency: str,
        pocket_name: str | None,
        user_id: str,
    ) -> None:
        await db.execute(
            _MARK_ORPHANED_SQL,
            {
                "movement_id": movement_id,
                "user_id": user_id,
                "account_name": account_name,
                "account_currency": account_currency,
                "pocket_name": pocket_name,
            },
        )
