"""CascadeDeleter: remove an account together with everything hanging off it.

Order (children before parents):
  1. resolve the account for this user (missing and foreign look the same)
  2. per pocket: sub-pockets first (fixed pockets only), then the pocket
  3. per movement: hard delete, or orphan with an account/pocket snapshot
  4. the account itself

Counts in the result equal the delete/orphan calls issued. The deleter never
commits or rolls back: it runs inside the caller's session. If a step fails,
CascadeDeleteError carries the step name and the counts completed so far.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.pf_account.domain.repository import AccountRepositoryProtocol
from src.pf_account.infrastructure.persistence import AccountRepository
from src.pf_common.errors import AccountNotFoundError, CascadeDeleteError
from src.pf_movement.domain.repository import MovementRepositoryProtocol
from src.pf_movement.infrastructure.persistence import MovementRepository
from src.pf_pocket.domain.repository import (
    PocketRepositoryProtocol,
    SubPocketRepositoryProtocol,
)
from src.pf_pocket.infrastructure.persistence import PocketRepository, SubPocketRepository

logger = logging.getLogger(__name__)


@dataclass
class CascadeDeleteResult:
    account_name: str
    pockets_deleted: int = 0
    sub_pockets_deleted: int = 0
    movements_affected: int = 0
    account_deleted: bool = False


class CascadeDeleter:
    def __init__(
        self,
        account_repo: AccountRepositoryProtocol | None = None,
        pocket_repo: PocketRepositoryProtocol | None = None,
        sub_pocket_repo: SubPocketRepositoryProtocol | None = None,
        movement_repo: MovementRepositoryProtocol | None = None,
    ) -> None:
        self._account_repo: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._pocket_repo: PocketRepositoryProtocol = pocket_repo or PocketRepository()
        self._sub_pocket_repo: SubPocketRepositoryProtocol = (
            sub_pocket_repo or SubPocketRepository()
        )
        self._movement_repo: MovementRepositoryProtocol = movement_repo or MovementRepository()

    async def delete(
        self,
        db: AsyncSession,
        account_id: str,
        user_id: str,
        delete_movements_hard: bool,
    ) -> CascadeDeleteResult:
        account = await self._account_repo.get_account_by_id(db, account_id, user_id)
        if account is None:
            raise AccountNotFoundError(account_id)

        result = CascadeDeleteResult(account_name=account.name)
        step = "list pockets"
        try:
            pockets = await self._pocket_repo.find_by_account_id(db, account_id, user_id)
            # Captured before deletion so orphaned movements keep their pocket name
            pocket_names = {pocket.id: pocket.name for pocket in pockets}

            for pocket in pockets:
                if pocket.is_fixed:
                    step = f"delete sub-pockets of pocket {pocket.id}"
                    sub_pockets = await self._sub_pocket_repo.find_by_pocket_id(
                        db, pocket.id, user_id
                    )
                    for sub_pocket in sub_pockets:
                        await self._sub_pocket_repo.delete(db, sub_pocket.id, user_id)
                        result.sub_pockets_deleted += 1
                step = f"delete pocket {pocket.id}"
                await self._pocket_repo.delete(db, pocket.id, user_id)
                result.pockets_deleted += 1

            step = "list movements"
            movements = await self._movement_repo.find_by_account_id(db, account_id, user_id)
            for movement in movements:
                if delete_movements_hard:
                    step = f"delete movement {movement.id}"
                    await self._movement_repo.delete(db, movement.id, user_id)
                else:
                    step = f"orphan movement {movement.id}"
                    await self._movement_repo.mark_as_orphaned(
                        db,
                        movement.id,
                        account.name,
                        account.currency.value,
                        pocket_names.get(movement.pocket_id),
                        user_id,
                    )
                result.movements_affected += 1

            step = "delete account"
            await self._account_repo.delete(db, account_id, user_id)
            result.account_deleted = True
        except Exception as exc:
            raise CascadeDeleteError(account_id, step, result) from exc

        logger.info(
            "Cascade deleted account %s: pockets=%d sub_pockets=%d movements=%d (%s)",
            account_id,
            result.pockets_deleted,
            result.sub_pockets_deleted,
            result.movements_affected,
            "hard-deleted" if delete_movements_hard else "orphaned",
        )
        return result
