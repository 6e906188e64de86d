"""Market data layer -- CoinGecko access behind a TTL cache and rate limiters."""

from coinchat.market_data.coingecko_client import CoinGeckoClient
from coinchat.market_data.data_client import MarketDataClient
from coinchat.market_data.rate_limiter import SlidingWindowRateLimiter
from coinchat.market_data.response_cache import CacheStats, ResponseCache, make_cache_key
from coinchat.market_data.source import MarketDataSource

__all__ = [
    "CacheStats",
    "CoinGeckoClient",
    "MarketDataClient",
    "MarketDataSource",
    "ResponseCache",
    "SlidingWindowRateLimiter",
    "make_cache_key",
]
