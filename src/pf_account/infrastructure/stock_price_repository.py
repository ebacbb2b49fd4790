"""StockPriceRepository: persistent tier of the price cache.

One row per symbol (symbol is the primary key); save() upserts.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pf_account.domain.stock_price import StockPrice
from src.pf_common.datetime_utils import as_utc

_FIND_BY_SYMBOL_SQL = text("""
    SELECT symbol, price, last_updated
    FROM stock_prices
    WHERE symbol = :symbol
""")

_UPSERT_SQL = text("""
    INSERT INTO stock_prices (symbol, price, currency, last_updated)
    VALUES (:symbol, :price, 'USD', :last_updated)
    ON CONFLICT (symbol) DO UPDATE
        SET price = EXCLUDED.price,
            last_updated = EXCLUDED.last_updated
""")

_DELETE_EXPIRED_SQL = text("""
    DELETE FROM stock_prices
    WHERE last_updated < :older_than
    RETURNING symbol
""")


class StockPriceRepository:
    async def find_by_symbol(self, db: AsyncSession, symbol: str) -> StockPrice | None:
        result = await db.execute(_FIND_BY_SYMBOL_SQL, {"symbol": symbol.upper()})
        row = result.fetchone()
        if row is None:
            return None
        return StockPrice(
            symbol=row.symbol,
            price=float(row.price),  # NUMERIC -> Decimal
            captured_at=as_utc(row.last_updated),
        )

    async def save(self, db: AsyncSession, stock_price: StockPrice) -> None:
        await db.execute(
            _UPSERT_SQL,
            {
                "symbol": stock_price.symbol,
                "price": stock_price.price,
                "last_updated": stock_price.captured_at,
            },
        )

    async def delete_expired(self, db: AsyncSession, older_than: datetime) -> int:
        """Remove quotes captured before `older_than`; returns rows deleted."""
        result = await db.execute(_DELETE_EXPIRED_SQL, {"older_than": older_than})
        return len(result.fetchall())
