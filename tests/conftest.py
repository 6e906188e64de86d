"""Shared test fixtures for the crypto chat assistant."""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from coinchat.config import AppSettings, CacheSettings, CoinGeckoSettings, RateLimitSettings
from coinchat.exceptions import UpstreamStatusError
from coinchat.market_data.data_client import MarketDataClient
from coinchat.market_data.rate_limiter import SlidingWindowRateLimiter
from coinchat.market_data.response_cache import ResponseCache
from coinchat.market_data.source import MarketDataSource
from coinchat.portfolio.store import PortfolioStore
from coinchat.storage.base import MemoryStorage


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Sample CoinGecko payloads
# ---------------------------------------------------------------------------

BTC_DETAILS = {
    "id": "bitcoin",
    "name": "Bitcoin",
    "symbol": "btc",
    "market_cap_rank": 1,
    "description": {
        "en": "Bitcoin is the first decentralized cryptocurrency. It was created in 2009."
    },
    "image": {"large": "https://assets.coingecko.com/coins/images/1/large/bitcoin.png"},
    "market_data": {
        "current_price": {"usd": 50000.0},
        "market_cap": {"usd": 980000000000.0},
        "total_volume": {"usd": 30000000000.0},
        "price_change_percentage_24h": 2.5,
    },
}

ETH_DETAILS = {
    "id": "ethereum",
    "name": "Ethereum",
    "symbol": "eth",
    "market_cap_rank": 2,
    "description": {"en": "Ethereum is a programmable blockchain. It runs smart contracts."},
    "image": {"large": "https://assets.coingecko.com/coins/images/279/large/ethereum.png"},
    "market_data": {
        "current_price": {"usd": 3000.0},
        "market_cap": {"usd": 360000000000.0},
        "total_volume": {"usd": 15000000000.0},
        "price_change_percentage_24h": -1.2,
    },
}

PRICES = {
    "bitcoin": {"usd": 50000.0, "usd_24h_change": 2.5, "usd_market_cap": 980000000000.0},
    "ethereum": {"usd": 3000.0, "usd_24h_change": -1.2, "usd_market_cap": 360000000000.0},
}

MARKET_CHART = {
    "prices": [
        [1700000000000, 49000.0],
        [1700086400000, 49500.0],
        [1700172800000, 50000.0],
    ]
}

TRENDING = {
    "coins": [
        {"item": {"id": cid, "name": name, "symbol": sym, "market_cap_rank": rank, "thumb": ""}}
        for cid, name, sym, rank in [
            ("pepe", "Pepe", "PEPE", 30),
            ("sui", "Sui", "SUI", 20),
            ("bitcoin", "Bitcoin", "BTC", 1),
            ("solana", "Solana", "SOL", 5),
            ("dogwifcoin", "dogwifhat", "WIF", 60),
            ("bonk", "Bonk", "BONK", 70),
        ]
    ]
}

def _simple_price(params: dict) -> dict:
    ids = params["ids"].split(",")
    return {coin_id: PRICES[coin_id] for coin_id in ids if coin_id in PRICES}


DEFAULT_ROUTES: dict[str, Any] = {
    "/simple/price": _simple_price,
    "/coins/bitcoin": BTC_DETAILS,
    "/coins/ethereum": ETH_DETAILS,
    "/coins/bitcoin/market_chart": MARKET_CHART,
    "/coins/ethereum/market_chart": MARKET_CHART,
    "/search/trending": TRENDING,
    "/search": {"coins": []},
    "/global": {"data": {"active_cryptocurrencies": 10000}},
    "/exchange_rates": {"rates": {"usd": {"name": "US Dollar", "value": 65000.0}}},
    "/coins/markets": [{"id": "bitcoin", "current_price": 50000.0}],
}


def make_source(routes: dict[str, Any] | None = None) -> AsyncMock:
    """AsyncMock MarketDataSource answering from a path -> payload table.

    Payloads may be plain values, callables taking the params, or exceptions
    to raise. Unknown paths raise a 404 UpstreamStatusError.
    """
    table = {**DEFAULT_ROUTES, **(routes or {})}

    async def _get_json(path: str, params: dict | None = None) -> Any:
        if path not in table:
            raise UpstreamStatusError(404, "API Error: 404 - coin not found")
        payload = table[path]
        if isinstance(payload, Exception):
            raise payload
        if callable(payload):
            return payload(params or {})
        return payload

    source = AsyncMock(spec=MarketDataSource)
    source.get_json.side_effect = _get_json
    source.admits_request.return_value = True
    return source


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_settings() -> AppSettings:
    """AppSettings with test defaults."""
    return AppSettings(
        log_level="DEBUG",
        coingecko=CoinGeckoSettings(base_url="https://api.test/api/v3", timeout_seconds=2.0),
        rate_limit=RateLimitSettings(),
        cache=CacheSettings(),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def source() -> AsyncMock:
    return make_source()


@pytest.fixture
def cache(clock: FakeClock) -> ResponseCache:
    return ResponseCache(ttl_seconds=300, cleanup_interval=600, clock=clock)


@pytest.fixture
def limiter(clock: FakeClock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(50, 60, clock=clock, name="orchestration")


@pytest.fixture
def market_data(
    source: AsyncMock, cache: ResponseCache, limiter: SlidingWindowRateLimiter
) -> MarketDataClient:
    return MarketDataClient(source, cache, limiter)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def portfolio(market_data: MarketDataClient, storage: MemoryStorage) -> PortfolioStore:
    return PortfolioStore(market_data, storage, refresh_interval=0.01)


@pytest.fixture
def source_factory() -> Callable[..., AsyncMock]:
    return make_source
