"""StockPrice value object: an immutable quote with a freshness rule.

A quote is fresh while `now <= captured_at + max_age`; exactly 24h old is
still fresh. "Updating" a quote always yields a new instance.
"""

import math
import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any

from src.pf_common.datetime_utils import utc_now
from src.pf_common.enums import PriceSource
from src.pf_common.errors import ValidationError

PRICE_MAX_AGE = timedelta(hours=24)

_SYMBOL_RE = re.compile(r"^[A-Z]{1,5}$")


def normalize_symbol(symbol: str) -> str:
    """'voo ' -> 'VOO'; anything that is not 1-5 letters is rejected."""
    normalized = symbol.strip().upper()
    if not _SYMBOL_RE.match(normalized):
        raise ValidationError(f"Stock symbol must be 1-5 letters, got {symbol!r}")
    return normalized


@dataclass(frozen=True)
class StockPrice:
    symbol: str
    price: float
    captured_at: datetime
    # Provenance only; two quotes from different tiers are still the same value
    source: PriceSource | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.symbol, str) or not _SYMBOL_RE.match(self.symbol):
            raise ValidationError(
                f"Stock symbol must be 1-5 uppercase letters, got {self.symbol!r}"
            )
        if (
            isinstance(self.price, bool)
            or not isinstance(self.price, (int, float))
            or not math.isfinite(self.price)
        ):
            raise ValidationError(f"Stock price must be a finite number, got {self.price!r}")
        if self.price < 0:
            raise ValidationError(f"Stock price cannot be negative, got {self.price}")
        if not isinstance(self.captured_at, datetime) or self.captured_at.tzinfo is None:
            raise ValidationError("Stock price capture time must be a timezone-aware datetime")

    def is_expired(
        self, now: datetime | None = None, max_age: timedelta = PRICE_MAX_AGE
    ) -> bool:
        now = now or utc_now()
        return now > self.captured_at + max_age

    def is_fresh(
        self, now: datetime | None = None, max_age: timedelta = PRICE_MAX_AGE
    ) -> bool:
        return not self.is_expired(now, max_age)

    def age_in_hours(self, now: datetime | None = None) -> float:
        now = now or utc_now()
        return (now - self.captured_at).total_seconds() / 3600

    def with_updated_price(
        self, new_price: float, now: datetime | None = None
    ) -> "StockPrice":
        return StockPrice(self.symbol, new_price, now or utc_now())

    def with_source(self, source: PriceSource) -> "StockPrice":
        return replace(self, source=source)

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "captured_at": self.captured_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StockPrice":
        try:
            captured_at = datetime.fromisoformat(data["captured_at"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid stock price capture time: {exc}") from exc
        return cls(
            symbol=data.get("symbol"),  # type: ignore[arg-type]
            price=data.get("price"),  # type: ignore[arg-type]
            captured_at=captured_at,
        )
