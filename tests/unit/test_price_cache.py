"""Unit tests for PriceCache tier resolution."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.pf_account.application.price_cache import PriceCache
from src.pf_account.domain.stock_price import StockPrice
from src.pf_common.enums import PriceSource
from src.pf_common.errors import PriceProviderError, ValidationError

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


def _make_cache(
    stored: StockPrice | None = None,
    provider_price: float | Exception = 401.5,
    now: datetime = NOW,
) -> tuple[PriceCache, AsyncMock, AsyncMock]:
    repo = AsyncMock()
    repo.find_by_symbol.return_value = stored
    provider = AsyncMock()
    if isinstance(provider_price, Exception):
        provider.fetch_price.side_effect = provider_price
    else:
        provider.fetch_price.return_value = provider_price
    cache = PriceCache(repo=repo, provider=provider, clock=lambda: now)
    return cache, repo, provider


class TestLocalTier:
    async def test_second_call_served_locally(self, db: AsyncMock) -> None:
        cache, repo, provider = _make_cache()

        await cache.get_price(db, "VOO")
        quote = await cache.get_price(db, "VOO")

        assert quote.source is PriceSource.CACHE
        assert quote.price == 401.5
        repo.find_by_symbol.assert_awaited_once()
        provider.fetch_price.assert_awaited_once()

    async def test_symbol_case_resolves_to_same_entry(self, db: AsyncMock) -> None:
        cache, _, provider = _make_cache()

        await cache.get_price(db, "voo")
        quote = await cache.get_price(db, " VOO ")

        assert quote.symbol == "VOO"
        assert quote.source is PriceSource.CACHE
        provider.fetch_price.assert_awaited_once_with("VOO")
        assert cache.cache_stats() == {"local_cache_size": 1}

    async def test_stale_local_entry_is_skipped(self, db: AsyncMock) -> None:
        old = StockPrice("VOO", 380.0, NOW - timedelta(hours=25))
        cache = PriceCache(
            repo=AsyncMock(**{"find_by_symbol.return_value": None}),
            provider=AsyncMock(**{"fetch_price.return_value": 402.0}),
            clock=lambda: NOW,
            local_cache={"VOO": old},
        )

        quote = await cache.get_price(db, "VOO")

        assert quote.price == 402.0
        assert quote.source is PriceSource.REMOTE_API


class TestStoreTier:
    async def test_fresh_store_hit_skips_provider(self, db: AsyncMock) -> None:
        stored = StockPrice("VOO", 399.0, NOW - timedelta(hours=3))
        cache, _, provider = _make_cache(stored=stored)

        quote = await cache.get_price(db, "VOO")

        assert quote.source is PriceSource.PERSISTED_STORE
        assert quote.price == 399.0
        provider.fetch_price.assert_not_awaited()
        assert cache.cache_stats()["local_cache_size"] == 1

    async def test_store_hit_exactly_24h_old_is_used(self, db: AsyncMock) -> None:
        stored = StockPrice("VOO", 399.0, NOW - timedelta(hours=24))
        cache, _, provider = _make_cache(stored=stored)

        quote = await cache.get_price(db, "VOO")

        assert quote.source is PriceSource.PERSISTED_STORE
        provider.fetch_price.assert_not_awaited()

    async def test_expired_store_hit_goes_to_provider(self, db: AsyncMock) -> None:
        stored = StockPrice("VOO", 399.0, NOW - timedelta(hours=24, seconds=1))
        cache, repo, provider = _make_cache(stored=stored, provider_price=405.0)

        quote = await cache.get_price(db, "VOO")

        assert quote.source is PriceSource.REMOTE_API
        assert quote.price == 405.0
        provider.fetch_price.assert_awaited_once_with("VOO")
        repo.save.assert_awaited_once()


class TestProviderTier:
    async def test_provider_result_written_to_both_tiers(self, db: AsyncMock) -> None:
        cache, repo, _ = _make_cache(provider_price=410.25)

        quote = await cache.get_price(db, "AAPL")

        saved: StockPrice = repo.save.await_args.args[1]
        assert saved.symbol == "AAPL"
        assert saved.price == 410.25
        assert saved.captured_at == NOW
        assert quote.captured_at == NOW
        db.commit.assert_not_awaited()
        assert cache.cache_stats()["local_cache_size"] == 1

    async def test_provider_failure_writes_nothing(self, db: AsyncMock) -> None:
        cache, repo, _ = _make_cache(provider_price=PriceProviderError("VOO", "rate limit"))

        with pytest.raises(PriceProviderError):
            await cache.get_price(db, "VOO")

        repo.save.assert_not_awaited()
        db.commit.assert_not_awaited()
        assert cache.cache_stats()["local_cache_size"] == 0

    async def test_store_write_failure_leaves_session_to_caller(self, db: AsyncMock) -> None:
        cache, repo, _ = _make_cache()
        repo.save.side_effect = RuntimeError("db down")

        with pytest.raises(RuntimeError):
            await cache.get_price(db, "VOO")

        db.commit.assert_not_awaited()
        db.rollback.assert_not_awaited()
        assert cache.cache_stats()["local_cache_size"] == 0


class TestInjectedPolicy:
    async def test_custom_max_age(self, db: AsyncMock) -> None:
        stored = StockPrice("VOO", 399.0, NOW - timedelta(hours=2))
        repo = AsyncMock(**{"find_by_symbol.return_value": stored})
        provider = AsyncMock(**{"fetch_price.return_value": 400.0})
        cache = PriceCache(repo=repo, provider=provider, clock=lambda: NOW, max_age=timedelta(hours=1))

        quote = await cache.get_price(db, "VOO")

        assert quote.source is PriceSource.REMOTE_API

    async def test_clock_drives_local_expiry(self, db: AsyncMock) -> None:
        current = {"now": NOW}
        repo = AsyncMock(**{"find_by_symbol.return_value": None})
        provider = AsyncMock(**{"fetch_price.return_value": 400.0})
        cache = PriceCache(repo=repo, provider=provider, clock=lambda: current["now"])

        await cache.get_price(db, "VOO")
        current["now"] = NOW + timedelta(hours=25)
        await cache.get_price(db, "VOO")

        assert provider.fetch_price.await_count == 2


class TestHousekeeping:
    async def test_clear_local_cache(self, db: AsyncMock) -> None:
        cache, _, provider = _make_cache()
        await cache.get_price(db, "VOO")

        cache.clear_local_cache()
        await cache.get_price(db, "VOO")

        assert provider.fetch_price.await_count == 2

    async def test_invalid_symbol_rejected_before_any_lookup(self, db: AsyncMock) -> None:
        cache, repo, provider = _make_cache()

        with pytest.raises(ValidationError):
            await cache.get_price(db, "BRK.B")

        repo.find_by_symbol.assert_not_awaited()
        provider.fetch_price.assert_not_awaited()

    async def test_purge_expired_clears_both_tiers(self, db: AsyncMock) -> None:
        local = {
            "VOO": StockPrice("VOO", 400.0, NOW - timedelta(hours=25)),
            "AAPL": StockPrice("AAPL", 190.0, NOW - timedelta(hours=24)),
        }
        repo = AsyncMock(**{"delete_expired.return_value": 4})
        cache = PriceCache(repo=repo, provider=AsyncMock(), clock=lambda: NOW, local_cache=local)

        deleted = await cache.purge_expired(db)

        assert deleted == 4
        repo.delete_expired.assert_awaited_once_with(db, NOW - timedelta(hours=24))
        assert list(local) == ["AAPL"]
        db.commit.assert_not_awaited()
