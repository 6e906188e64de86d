"""Shared data models for the crypto chat assistant.

Prices and percentages are floats passed through exactly as the market-data
source reports them. Rounding happens only when a reply is formatted.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class PriceQuote:
    """Current price snapshot for a single coin."""

    coin_id: str
    price: float
    change_24h: float | None = None
    market_cap: float | None = None


@dataclass
class CoinDetails:
    """Descriptive and market data for a single coin."""

    id: str
    name: str
    symbol: str  # upper-cased
    description: str
    current_price: float | None = None
    market_cap: float | None = None
    change_24h: float | None = None
    volume_24h: float | None = None
    rank: int | None = None
    image: str | None = None


@dataclass
class PricePoint:
    """A single point of a market-chart history series."""

    timestamp: datetime
    price: float


@dataclass
class CoinSummary:
    """Compact coin reference returned by trending and search endpoints."""

    id: str
    name: str
    symbol: str
    rank: int | None = None
    thumb: str | None = None


@dataclass(frozen=True)
class Holding:
    """One ledger line: an owned amount of one coin.

    Frozen so the portfolio store can only change holdings by building
    new ones with dataclasses.replace().
    """

    id: str
    coin_id: str
    display_name: str
    symbol: str
    amount: float
    current_price: float | None = None
    current_value: float | None = None
    change_24h: float | None = None
    added_at: float = field(default_factory=time.time)
    last_updated: float = field(default_factory=time.time)
