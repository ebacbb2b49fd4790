"""Repository Protocols: dependency inversion for testability.

Unit tests inject mocks that conform to these Protocols.
Infrastructure layer provides the real implementations.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pf_account.domain.models import Account
from src.pf_account.domain.stock_price import StockPrice


class AccountRepositoryProtocol(Protocol):
    async def get_account_by_id(
        self, db: AsyncSession, account_id: str, user_id: str
    ) -> Account | None: ...

    async def list_accounts_by_user(
        self, db: AsyncSession, user_id: str
    ) -> list[Account]: ...

    async def exists_by_name_and_currency(
        self,
        db: AsyncSession,
        user_id: str,
        name: str,
        currency: str,
        exclude_id: str | None = None,
    ) -> bool: ...

    async def create(self, db: AsyncSession, user_id: str, account: Account) -> None: ...

    async def update(self, db: AsyncSession, user_id: str, account: Account) -> None: ...

    async def update_balance(
        self, db: AsyncSession, account_id: str, user_id: str, balance: float
    ) -> None: ...

    async def update_display_orders(
        self, db: AsyncSession, user_id: str, account_ids: list[str]
    ) -> None: ...

    async def delete(self, db: AsyncSession, account_id: str, user_id: str) -> None: ...


class StockPriceRepositoryProtocol(Protocol):
    async def find_by_symbol(self, db: AsyncSession, symbol: str) -> StockPrice | None: ...

    async def save(self, db: AsyncSession, stock_price: StockPrice) -> None: ...

    async def delete_expired(self, db: AsyncSession, older_than: datetime) -> int: ...


class PriceProviderProtocol(Protocol):
    """Remote quote source. Raises PriceProviderError on any failure."""

    async def fetch_price(self, symbol: str) -> float: ...
