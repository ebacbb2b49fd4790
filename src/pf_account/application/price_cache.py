"""PriceCache: three-tier stock price resolution.

Tiers, cheapest first:
  1. in-process dict       (no I/O)
  2. stock_prices table    (one query)
  3. remote price provider (rate limited)

The first fresh hit wins and no more expensive tier is touched. Misses are
back-filled on the way out: a store hit refreshes the dict, a provider hit
refreshes both. A provider failure writes nothing anywhere.

The store write joins the caller's session: committing or rolling it back is
the caller's job, so a price fetched mid-operation is persisted together with
the rest of that operation or not at all.

The dict is process-wide and unlocked; concurrent misses for the same symbol
may both reach the provider and the last write wins.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pf_account.domain.repository import (
    PriceProviderProtocol,
    StockPriceRepositoryProtocol,
)
from src.pf_account.domain.stock_price import StockPrice, normalize_symbol
from src.pf_account.infrastructure.alpha_vantage import AlphaVantagePriceProvider
from src.pf_account.infrastructure.stock_price_repository import StockPriceRepository
from src.pf_common.datetime_utils import utc_now
from src.pf_common.enums import PriceSource

logger = logging.getLogger(__name__)


class PriceCache:
    def __init__(
        self,
        repo: StockPriceRepositoryProtocol | None = None,
        provider: PriceProviderProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
        max_age: timedelta | None = None,
        local_cache: dict[str, StockPrice] | None = None,
    ) -> None:
        self._repo: StockPriceRepositoryProtocol = repo or StockPriceRepository()
        self._provider: PriceProviderProtocol = provider or AlphaVantagePriceProvider()
        self._clock = clock
        self._max_age = (
            max_age if max_age is not None else timedelta(hours=settings.PRICE_MAX_AGE_HOURS)
        )
        self._local: dict[str, StockPrice] = local_cache if local_cache is not None else {}

    async def get_price(self, db: AsyncSession, symbol: str) -> StockPrice:
        symbol = normalize_symbol(symbol)
        now = self._clock()

        # 1. In-process tier
        cached = self._local.get(symbol)
        if cached is not None and cached.is_fresh(now, self._max_age):
            logger.debug("Stock price %s served from local cache", symbol)
            return cached.with_source(PriceSource.CACHE)

        # 2. Persistent store tier
        stored = await self._repo.find_by_symbol(db, symbol)
        if stored is not None and stored.is_fresh(now, self._max_age):
            quote = stored.with_source(PriceSource.PERSISTED_STORE)
            self._local[symbol] = quote
            logger.debug("Stock price %s served from store (age %.1fh)", symbol, quote.age_in_hours(now))
            return quote

        # 3. Remote provider tier: PriceProviderError propagates untouched
        price = await self._provider.fetch_price(symbol)
        quote = StockPrice(symbol, price, self._clock(), PriceSource.REMOTE_API)
        await self._repo.save(db, quote)
        self._local[symbol] = quote
        logger.info("Stock price %s fetched from provider: %s", symbol, price)
        return quote

    async def purge_expired(self, db: AsyncSession) -> int:
        """Drop expired quotes from both tiers; returns store rows deleted."""
        now = self._clock()
        for symbol, quote in list(self._local.items()):
            if quote.is_expired(now, self._max_age):
                del self._local[symbol]
        return await self._repo.delete_expired(db, now - self._max_age)

    def clear_local_cache(self) -> None:
        self._local.clear()

    def cache_stats(self) -> dict[str, Any]:
        return {"local_cache_size": len(self._local)}
