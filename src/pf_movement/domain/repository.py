"""Repository Protocol for movements."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pf_movement.domain.models import Movement


class MovementRepositoryProtocol(Protocol):
    async def find_by_account_id(
        self, db: AsyncSession, account_id: str, user_id: str
    ) -> list[Movement]: ...

    async def delete(self, db: AsyncSession, movement_id: str, user_id: str) -> None: ...

    async def mark_as_orphaned(
        self,
        db: AsyncSession,
        movement_id: str,
        account_name: str,
        account_currency: str,
        pocket_name: str | None,
        user_id: str,
    ) -> None: ...
