"""Natural-language layer: coin alias resolution and intent parsing."""

from coinchat.nlu.aliases import COIN_ALIASES, resolve_coin_id
from coinchat.nlu.intents import (
    AddHolding,
    ChartRequest,
    General,
    Help,
    InfoRequest,
    Intent,
    IntentType,
    PortfolioValue,
    PriceQuery,
    Trending,
)
from coinchat.nlu.parser import extract_coin_name, extract_holding_info, parse_message

__all__ = [
    "AddHolding",
    "COIN_ALIASES",
    "ChartRequest",
    "General",
    "Help",
    "InfoRequest",
    "Intent",
    "IntentType",
    "PortfolioValue",
    "PriceQuery",
    "Trending",
    "extract_coin_name",
    "extract_holding_info",
    "parse_message",
    "resolve_coin_id",
]
