"""AccountApplicationService: thin composition layer.

Combines repository calls, balance calculation and schema transformations.
Mutating operations commit on success and roll back on any failure.

Reads recompute every balance before returning it. For investment accounts
a failed price fetch is not fatal: the account keeps its last known balance
and the read carries on. Recomputed balances that changed are written back
so that "last known" survives a later provider outage.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from src.pf_account.application.cascade import CascadeDeleter
from src.pf_account.application.price_cache import PriceCache
from src.pf_account.application.schemas import (
    AccountListResponse,
    AccountResponse,
    CacheStatsResponse,
    CascadeDeleteResponse,
    CreateAccountRequest,
    StockPriceResponse,
    UpdateAccountRequest,
    UpdateInvestmentRequest,
)
from src.pf_account.domain.balance import BalanceCalculator
from src.pf_account.domain.models import Account
from src.pf_account.domain.repository import AccountRepositoryProtocol
from src.pf_account.infrastructure.persistence import AccountRepository
from src.pf_common.datetime_utils import utc_now
from src.pf_common.enums import AccountType
from src.pf_common.errors import (
    AccountConflictError,
    AccountNotFoundError,
    CascadeDeleteError,
    PriceProviderError,
    ValidationError,
)
from src.pf_pocket.domain.repository import PocketRepositoryProtocol
from src.pf_pocket.infrastructure.persistence import PocketRepository

logger = logging.getLogger(__name__)


class AccountApplicationService:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        pocket_repo: PocketRepositoryProtocol | None = None,
        price_cache: PriceCache | None = None,
        calculator: BalanceCalculator | None = None,
        cascade_deleter: CascadeDeleter | None = None,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._pocket_repo: PocketRepositoryProtocol = pocket_repo or PocketRepository()
        self._price_cache = price_cache or PriceCache()
        self._calculator = calculator or BalanceCalculator()
        self._cascade = cascade_deleter or CascadeDeleter(
            account_repo=self._repo, pocket_repo=self._pocket_repo
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_accounts(
        self, db: AsyncSession, user_id: str, skip_investment_prices: bool = False
    ) -> AccountListResponse:
        accounts = await self._repo.list_accounts_by_user(db, user_id)
        items: list[AccountResponse] = []
        try:
            for account in sorted(accounts, key=lambda a: a.display_sort_key):
                price = await self._refresh_balance(
                    db, user_id, account, skip_investment_prices
                )
                items.append(self._to_response(account, price))
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return AccountListResponse(items=items, total=len(items))

    async def get_account(
        self,
        db: AsyncSession,
        user_id: str,
        account_id: str,
        skip_investment_price: bool = False,
    ) -> AccountResponse:
        account = await self._get_or_raise(db, user_id, account_id)
        try:
            price = await self._refresh_balance(db, user_id, account, skip_investment_price)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return self._to_response(account, price)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_account(
        self, db: AsyncSession, user_id: str, req: CreateAccountRequest
    ) -> AccountResponse:
        cd_created_at = req.cd_created_at
        if req.type is AccountType.CD and cd_created_at is None:
            cd_created_at = utc_now()

        account = Account(
            id=str(uuid.uuid4()),
            name=req.name,
            color=req.color,
            currency=req.currency,
            type=req.type,
            stock_symbol=req.stock_symbol,
            invested_amount=req.invested_amount,
            shares=req.shares,
            principal=req.principal,
            interest_rate=req.interest_rate,
            term_months=req.term_months,
            maturity_date=req.maturity_date,
            compounding_frequency=req.compounding_frequency,
            early_withdrawal_penalty=req.early_withdrawal_penalty,
            withholding_tax_rate=req.withholding_tax_rate,
            cd_created_at=cd_created_at,
        )
        await self._ensure_unique(db, user_id, account)
        if account.is_cd():
            self._calculator.update_account_balance(account)

        try:
            await self._repo.create(db, user_id, account)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Created %s account %s for user %s", account.type.value, account.id, user_id)
        return self._to_response(account, None)

    async def update_account(
        self, db: AsyncSession, user_id: str, account_id: str, req: UpdateAccountRequest
    ) -> AccountResponse:
        account = await self._get_or_raise(db, user_id, account_id)
        account.update(name=req.name, color=req.color, currency=req.currency)
        if req.name is not None or req.currency is not None:
            await self._ensure_unique(db, user_id, account, exclude_id=account.id)

        try:
            await self._repo.update(db, user_id, account)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return self._to_response(account, None)

    async def update_investment(
        self, db: AsyncSession, user_id: str, account_id: str, req: UpdateInvestmentRequest
    ) -> AccountResponse:
        account = await self._get_or_raise(db, user_id, account_id)
        account.update_investment_details(shares=req.shares, invested_amount=req.invested_amount)

        try:
            await self._repo.update(db, user_id, account)
            price = await self._refresh_balance(db, user_id, account)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return self._to_response(account, price)

    async def delete_account(self, db: AsyncSession, user_id: str, account_id: str) -> None:
        account = await self._get_or_raise(db, user_id, account_id)
        pockets = await self._pocket_repo.find_by_account_id(db, account.id, user_id)
        if pockets:
            raise AccountConflictError(
                f'Cannot delete account "{account.name}" because it has '
                f"{len(pockets)} pocket(s). Delete the pockets first or use cascade delete."
            )
        try:
            await self._repo.delete(db, account.id, user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    async def delete_account_cascade(
        self, db: AsyncSession, user_id: str, account_id: str, delete_movements: bool
    ) -> CascadeDeleteResponse:
        try:
            result = await self._cascade.delete(db, account_id, user_id, delete_movements)
            await db.commit()
        except CascadeDeleteError as exc:
            await db.rollback()
            logger.error(
                "Cascade delete of account %s rolled back at step '%s' "
                "(pockets=%d sub_pockets=%d movements=%d already processed)",
                account_id,
                exc.step,
                exc.progress.pockets_deleted,
                exc.progress.sub_pockets_deleted,
                exc.progress.movements_affected,
            )
            raise
        except Exception:
            await db.rollback()
            raise
        return CascadeDeleteResponse.from_result(result)

    async def reorder_accounts(
        self, db: AsyncSession, user_id: str, account_ids: list[str]
    ) -> None:
        if not account_ids:
            raise ValidationError("At least one account ID must be provided")
        if len(set(account_ids)) != len(account_ids):
            raise ValidationError("Duplicate account IDs are not allowed")

        for index, account_id in enumerate(account_ids):
            account = await self._get_or_raise(db, user_id, account_id)
            account.update_display_order(index)

        try:
            await self._repo.update_display_orders(db, user_id, account_ids)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    async def get_stock_price(self, db: AsyncSession, symbol: str) -> StockPriceResponse:
        try:
            quote = await self._price_cache.get_price(db, symbol)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return StockPriceResponse.from_domain(quote)

    async def purge_expired_prices(self, db: AsyncSession) -> int:
        try:
            deleted = await self._price_cache.purge_expired(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Purged %d expired stock prices", deleted)
        return deleted

    def cache_stats(self) -> CacheStatsResponse:
        return CacheStatsResponse(**self._price_cache.cache_stats())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_or_raise(self, db: AsyncSession, user_id: str, account_id: str) -> Account:
        account = await self._repo.get_account_by_id(db, account_id, user_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def _ensure_unique(
        self, db: AsyncSession, user_id: str, account: Account, exclude_id: str | None = None
    ) -> None:
        if await self._repo.exists_by_name_and_currency(
            db, user_id, account.name, account.currency.value, exclude_id=exclude_id
        ):
            raise AccountConflictError(
                f'Account "{account.name}" with currency {account.currency.value} already exists'
            )

    async def _refresh_balance(
        self,
        db: AsyncSession,
        user_id: str,
        account: Account,
        skip_investment_price: bool = False,
    ) -> float | None:
        """Recompute and persist the balance. Returns the price used, if any.

        Only PriceProviderError degrades to the last known balance. Store
        errors and any other exception from the price cache propagate.
        """
        previous = account.balance
        price: float | None = None

        if account.is_investment():
            if skip_investment_price:
                return None
            try:
                quote = await self._price_cache.get_price(db, account.stock_symbol or "")
            except PriceProviderError as exc:
                logger.warning(
                    "Keeping last known balance %.2f for account %s: %s",
                    previous,
                    account.id,
                    exc.message,
                )
                return None
            price = quote.price
            self._calculator.update_account_balance(account, current_price=price)
        elif account.is_cd():
            self._calculator.update_account_balance(account)
        else:
            pockets = await self._pocket_repo.find_by_account_id(db, account.id, user_id)
            self._calculator.update_account_balance(account, pockets=pockets)

        # accounts.balance is NUMERIC(20,6)
        if round(account.balance, 6) != round(previous, 6):
            await self._repo.update_balance(db, account.id, user_id, account.balance)
        return price

    def _to_response(self, account: Account, current_price: float | None) -> AccountResponse:
        resp = AccountResponse.from_domain(account)
        if account.is_investment() and current_price is not None:
            resp.current_price = current_price
            resp.gains = self._calculator.calculate_investment_gains(account, current_price)
            resp.gains_percentage = self._calculator.calculate_investment_gains_percentage(
                account, current_price
            )
        return resp
