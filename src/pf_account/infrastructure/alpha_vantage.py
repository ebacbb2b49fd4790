"""Alpha Vantage GLOBAL_QUOTE client: the remote tier of the price cache.

Every failure mode (transport, non-2xx, error/rate-limit payloads, missing or
unparseable price) surfaces as PriceProviderError. No retries here; callers
own their retry policy.

Response shape:
    {"Global Quote": {"01. symbol": "VOO", "05. price": "401.2300", ...}}
Error shapes:
    {"Error Message": "..."}  unknown symbol / bad request
    {"Note": "..."}           rate limit hit
    {"Information": "..."}    invalid or premium-only API key
"""

import logging
import math
from typing import Any

import httpx

from config.settings import settings
from src.pf_common.errors import PriceProviderError

logger = logging.getLogger(__name__)

_ERROR_KEYS = (
    ("Error Message", "API error"),
    ("Note", "rate limit"),
    ("Information", "API info"),
)


class AlphaVantagePriceProvider:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key or settings.ALPHA_VANTAGE_API_KEY
        self._base_url = base_url or settings.ALPHA_VANTAGE_URL
        self._timeout = timeout if timeout is not None else settings.PRICE_PROVIDER_TIMEOUT_SECONDS
        self._client = client
        if self._api_key == "demo":
            logger.warning("ALPHA_VANTAGE_API_KEY not configured, using the rate-limited demo key")

    async def fetch_price(self, symbol: str) -> float:
        symbol = symbol.upper()
        params = {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self._api_key}
        try:
            response = await self._get(params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise PriceProviderError(
                symbol, f"provider returned status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise PriceProviderError(symbol, f"transport error: {exc!r}") from exc
        except ValueError as exc:
            raise PriceProviderError(symbol, "malformed JSON response") from exc
        return _parse_global_quote(symbol, data)

    async def _get(self, params: dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(self._base_url, params=params)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(self._base_url, params=params)


def _parse_global_quote(symbol: str, data: Any) -> float:
    if not isinstance(data, dict):
        raise PriceProviderError(symbol, "unexpected response shape")
    for key, label in _ERROR_KEYS:
        if key in data:
            raise PriceProviderError(symbol, f"{label}: {data[key]}")

    quote = data.get("Global Quote")
    raw = quote.get("05. price") if isinstance(quote, dict) else None
    if not raw:
        raise PriceProviderError(symbol, "no price data found")
    try:
        price = float(raw)
    except (TypeError, ValueError):
        raise PriceProviderError(symbol, f"invalid price data {raw!r}") from None
    if not math.isfinite(price) or price < 0:
        raise PriceProviderError(symbol, f"invalid price data {raw!r}")
    return price
