"""Typed intents produced by the message parser.

Each message yields exactly one intent. Coin-bearing intents carry both the
alias-resolved ``coin_id`` and the user's own ``raw_name`` for display.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class IntentType(str, Enum):
    """Intent discriminator."""

    PRICE_QUERY = "price_query"
    ADD_HOLDING = "add_holding"
    PORTFOLIO_VALUE = "portfolio_value"
    TRENDING = "trending"
    CHART_REQUEST = "chart_request"
    INFO_REQUEST = "info_request"
    HELP = "help"
    GENERAL = "general"


@dataclass(frozen=True)
class PriceQuery:
    coin_id: str
    raw_name: str
    type: ClassVar[IntentType] = IntentType.PRICE_QUERY


@dataclass(frozen=True)
class AddHolding:
    coin_id: str
    raw_name: str
    amount: float  # positive and finite
    type: ClassVar[IntentType] = IntentType.ADD_HOLDING


@dataclass(frozen=True)
class PortfolioValue:
    type: ClassVar[IntentType] = IntentType.PORTFOLIO_VALUE


@dataclass(frozen=True)
class Trending:
    type: ClassVar[IntentType] = IntentType.TRENDING


@dataclass(frozen=True)
class ChartRequest:
    coin_id: str
    raw_name: str
    type: ClassVar[IntentType] = IntentType.CHART_REQUEST


@dataclass(frozen=True)
class InfoRequest:
    coin_id: str
    raw_name: str
    type: ClassVar[IntentType] = IntentType.INFO_REQUEST


@dataclass(frozen=True)
class Help:
    type: ClassVar[IntentType] = IntentType.HELP


@dataclass(frozen=True)
class General:
    text: str
    type: ClassVar[IntentType] = IntentType.GENERAL


Intent = Union[
    PriceQuery,
    AddHolding,
    PortfolioValue,
    Trending,
    ChartRequest,
    InfoRequest,
    Help,
    General,
]
