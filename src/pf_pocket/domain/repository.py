"""Repository Protocols for pockets and sub-pockets."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pf_pocket.domain.models import Pocket, SubPocket


class PocketRepositoryProtocol(Protocol):
    async def find_by_account_id(
        self, db: AsyncSession, account_id: str, user_id: str
    ) -> list[Pocket]: ...

    async def delete(self, db: AsyncSession, pocket_id: str, user_id: str) -> None: ...


class SubPocketRepositoryProtocol(Protocol):
    async def find_by_pocket_id(
        self, db: AsyncSession, pocket_id: str, user_id: str
    ) -> list[SubPocket]: ...

    async def delete(self, db: AsyncSession, sub_pocket_id: str, user_id: str) -> None: ...
