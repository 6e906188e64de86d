"""Market data client: cache and rate limiting in front of the data source.

Every read follows the same path:
  1. derive the cache key from (endpoint, params)
  2. serve a fresh cached response if there is one (search is never cached)
  3. ask the orchestration limiter, then the source, for admission; fail
     fast if either denies, and only then record the request
  4. call the source, cache the decoded body, map it to typed models

Concurrent identical requests are not deduplicated: both are admitted
independently and both overwrite the same cache key.
"""

from datetime import datetime, timezone
from typing import Any

from coinchat.exceptions import CoinNotFoundError, RateLimitedError
from coinchat.logging import get_logger
from coinchat.market_data.rate_limiter import SlidingWindowRateLimiter
from coinchat.market_data.response_cache import CacheStats, ResponseCache, make_cache_key
from coinchat.market_data.source import MarketDataSource
from coinchat.models import CoinDetails, CoinSummary, PricePoint, PriceQuote

logger = get_logger(__name__)

_MAX_SEARCH_RESULTS = 10


def _first_sentence(text: str | None) -> str:
    if not text:
        return "No description available."
    sentence = text.split(".")[0].strip()
    return f"{sentence}." if sentence else "No description available."


class MarketDataClient:
    """Typed market-data operations with caching and admission control.

    Args:
        source: Raw JSON endpoint access (CoinGeckoClient in production).
        cache: Response cache shared by all cached reads.
        rate_limiter: Orchestration-level limiter (50/min by default).
        vs_currency: Quote currency for prices.
    """

    def __init__(
        self,
        source: MarketDataSource,
        cache: ResponseCache,
        rate_limiter: SlidingWindowRateLimiter,
        vs_currency: str = "usd",
    ) -> None:
        self._source = source
        self._cache = cache
        self._rate_limiter = rate_limiter
        self._vs = vs_currency

    @property
    def vs_currency(self) -> str:
        return self._vs

    async def _request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        use_cache: bool = True,
    ) -> Any:
        key = make_cache_key(endpoint, params)
        if use_cache:
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug("cache_hit", endpoint=endpoint)
                return cached

        # Both layers must admit before either records; nothing awaits in
        # between, so the source's own check in get_json sees the same window.
        if not self._rate_limiter.admit():
            logger.warning("orchestration_rate_limited", endpoint=endpoint)
            raise RateLimitedError(
                "Rate limit exceeded. Please wait before making more requests."
            )
        if not self._source.admits_request():
            logger.warning("source_rate_limited", endpoint=endpoint)
            raise RateLimitedError("Rate limit exceeded. Please wait a moment.")
        self._rate_limiter.record()

        data = await self._source.get_json(endpoint, params)
        if use_cache and data is not None:
            self._cache.put(key, data)
        return data

    # ──────────────────────────────────────────────
    # Prices
    # ──────────────────────────────────────────────

    async def get_current_price(self, coin_id: str) -> PriceQuote:
        """Current price, 24h change and market cap for one coin.

        Raises CoinNotFoundError if the response has no record for ``coin_id``.
        """
        data = await self._request(
            "/simple/price",
            {
                "ids": coin_id,
                "vs_currencies": self._vs,
                "include_24hr_change": True,
                "include_market_cap": True,
            },
        )
        record = (data or {}).get(coin_id)
        if not record or record.get(self._vs) is None:
            raise CoinNotFoundError(coin_id)

        return PriceQuote(
            coin_id=coin_id,
            price=record[self._vs],
            change_24h=record.get(f"{self._vs}_24h_change"),
            market_cap=record.get(f"{self._vs}_market_cap"),
        )

    async def get_multiple_prices(self, coin_ids: list[str]) -> dict[str, dict]:
        """Raw price records for several coins in one request.

        Returns the source mapping ``{coin_id: {"usd": ..., "usd_24h_change": ...}}``.
        Coins the source does not know are simply absent.
        """
        if not coin_ids:
            return {}
        return await self._request(
            "/simple/price",
            {
                "ids": ",".join(coin_ids),
                "vs_currencies": self._vs,
                "include_24hr_change": True,
            },
        )

    # ──────────────────────────────────────────────
    # Coin data
    # ──────────────────────────────────────────────

    async def get_coin_details(self, coin_id: str) -> CoinDetails:
        """Name, symbol, rank, market data and a one-sentence description."""
        coin = await self._request(
            f"/coins/{coin_id}",
            {
                "localization": False,
                "tickers": False,
                "market_data": True,
                "community_data": False,
                "developer_data": False,
                "sparkline": False,
            },
        )
        market_data = coin.get("market_data") or {}

        def _vs_value(field: str) -> float | None:
            return (market_data.get(field) or {}).get(self._vs)

        return CoinDetails(
            id=coin["id"],
            name=coin["name"],
            symbol=coin["symbol"].upper(),
            description=_first_sentence((coin.get("description") or {}).get("en")),
            current_price=_vs_value("current_price"),
            market_cap=_vs_value("market_cap"),
            change_24h=market_data.get("price_change_percentage_24h"),
            volume_24h=_vs_value("total_volume"),
            rank=coin.get("market_cap_rank"),
            image=(coin.get("image") or {}).get("large"),
        )

    async def get_historical_data(self, coin_id: str, days: int = 7) -> list[PricePoint]:
        """Price history; hourly points for ``days <= 1``, daily otherwise."""
        data = await self._request(
            f"/coins/{coin_id}/market_chart",
            {
                "vs_currency": self._vs,
                "days": days,
                "interval": "hourly" if days <= 1 else "daily",
            },
        )
        return [
            PricePoint(
                timestamp=datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc),
                price=price,
            )
            for ts_ms, price in data.get("prices", [])
        ]

    async def get_trending_coins(self) -> list[CoinSummary]:
        data = await self._request("/search/trending")
        return [
            CoinSummary(
                id=item["id"],
                name=item["name"],
                symbol=item["symbol"],
                rank=item.get("market_cap_rank"),
                thumb=item.get("thumb"),
            )
            for item in (entry["item"] for entry in data.get("coins", []))
        ]

    async def search_coins(self, query: str) -> list[CoinSummary]:
        """Free-text coin search. Never cached; needs at least 2 characters."""
        if not query or len(query) < 2:
            return []

        data = await self._request("/search", {"query": query}, use_cache=False)
        return [
            CoinSummary(
                id=coin["id"],
                name=coin["name"],
                symbol=coin["symbol"].upper(),
                rank=coin.get("market_cap_rank"),
                thumb=coin.get("thumb"),
            )
            for coin in data.get("coins", [])[:_MAX_SEARCH_RESULTS]
        ]

    # ──────────────────────────────────────────────
    # Market-wide data
    # ──────────────────────────────────────────────

    async def get_market_overview(self, per_page: int = 100, page: int = 1) -> list[dict]:
        """Coins ordered by market cap with 24h and 7d change."""
        return await self._request(
            "/coins/markets",
            {
                "vs_currency": self._vs,
                "order": "market_cap_desc",
                "per_page": per_page,
                "page": page,
                "sparkline": False,
                "price_change_percentage": "24h,7d",
            },
        )

    async def get_global_data(self) -> dict:
        return await self._request("/global")

    async def get_exchange_rates(self) -> dict:
        return await self._request("/exchange_rates")

    # ──────────────────────────────────────────────
    # Cache management
    # ──────────────────────────────────────────────

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    @property
    def cache_size(self) -> int:
        return len(self._cache)
