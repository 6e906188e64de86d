"""Free-text message parser.

Classifies a chat message into one typed Intent with an ordered cascade of
regex rules. The first rule whose pattern matches AND whose builder accepts
the match wins; there is no scoring. Order matters because several patterns
overlap (e.g. "what's X trading at" also matches the generic price phrasing).

Rule order:
  1. price_trading  "what's X trading at"
  2. price_query    "what's / price of / how much is X"
  3. price_simple   "X price"
  4. add_holding    "I have / own / add / buy N X"
  5. portfolio      portfolio / holdings / total value / how much
  6. trending       trending / hot / popular / top
  7. chart          "chart for X [7 days|week]"
  8. info           "tell me about / info about / what is X"
  9. help           exact "help" / "what can you do" / "commands"
 10. general        fallback

A builder returning None makes the cascade fall through to later rules.
That is how a failed amount or name extraction degrades gracefully.
"""

import math
import re
from collections.abc import Callable
from dataclasses import dataclass

from coinchat.nlu.aliases import resolve_coin_id
from coinchat.nlu.intents import (
    AddHolding,
    ChartRequest,
    General,
    Help,
    InfoRequest,
    Intent,
    PortfolioValue,
    PriceQuery,
    Trending,
)

_FILLER_WORDS = re.compile(r"\b(?:price|current|trading|at|now|today|currently)\b")
_MARKET_WORDS = re.compile(r"\b(?:crypto|cryptocurrency)\b")
_UNIT_WORDS = re.compile(r"\b(?:token|coin)\b(?!\w)")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")

_HOLDING_AMOUNT = re.compile(r"(\d+(?:\.\d+)?)\s+(.+)", re.IGNORECASE)


def extract_coin_name(text: str) -> str:
    """Reduce a captured phrase to a bare coin name.

    Lower-cases, drops filler words, drops standalone "token"/"coin" (but not
    "tokens" or "coinbase"), strips punctuation and collapses whitespace.
    """
    cleaned = text.lower()
    cleaned = _FILLER_WORDS.sub("", cleaned)
    cleaned = _MARKET_WORDS.sub("", cleaned)
    cleaned = _UNIT_WORDS.sub("", cleaned)
    cleaned = _PUNCTUATION.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    return cleaned.strip()


def extract_holding_info(text: str) -> tuple[float, str] | None:
    """Pull ``(amount, coin_name)`` out of an add-holding message.

    Returns None unless the amount is positive and finite and a name remains
    after cleaning.
    """
    match = _HOLDING_AMOUNT.search(text)
    if not match:
        return None

    amount = float(match.group(1))
    if not math.isfinite(amount) or amount <= 0:
        return None

    coin_name = extract_coin_name(match.group(2))
    if not coin_name:
        return None
    return amount, coin_name


@dataclass(frozen=True)
class IntentRule:
    """One step of the cascade: a pattern plus the builder it feeds."""

    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str], str], Intent | None]


def _refers_to_own_holdings(phrase: str) -> bool:
    return phrase == "my" or phrase.startswith("my ")


def _build_price(match: re.Match[str], text: str) -> Intent | None:
    coin_name = extract_coin_name(match.group(1))
    # "what's my portfolio worth" is about holdings, not a coin price
    if not coin_name or _refers_to_own_holdings(coin_name):
        return None
    return PriceQuery(coin_id=resolve_coin_id(coin_name), raw_name=coin_name)


def _build_add_holding(match: re.Match[str], text: str) -> Intent | None:
    info = extract_holding_info(text)
    if info is None:
        return None
    amount, coin_name = info
    return AddHolding(
        coin_id=resolve_coin_id(coin_name), raw_name=coin_name, amount=amount
    )


def _build_chart(match: re.Match[str], text: str) -> Intent | None:
    coin_name = extract_coin_name(match.group(1))
    if not coin_name:
        return None
    return ChartRequest(coin_id=resolve_coin_id(coin_name), raw_name=coin_name)


def _build_info(match: re.Match[str], text: str) -> Intent | None:
    coin_name = extract_coin_name(match.group(1))
    if not coin_name:
        return None
    return InfoRequest(coin_id=resolve_coin_id(coin_name), raw_name=coin_name)


def _constant(intent: Intent) -> Callable[[re.Match[str], str], Intent | None]:
    return lambda match, text: intent


RULES: tuple[IntentRule, ...] = (
    IntentRule(
        "price_trading",
        re.compile(r"(?:what'?s|what is)\s+(.+?)\s+trading\s+at", re.IGNORECASE),
        _build_price,
    ),
    IntentRule(
        "price_query",
        re.compile(
            r"(?:(?:what'?s|what is)\s+the\s+(?:current\s+)?price\s+of"
            r"|what'?s|what is|price of|current price|how much is)\s+(.+?)"
            r"(?:\s+trading\s+at)?(?:\?)?$",
            re.IGNORECASE,
        ),
        _build_price,
    ),
    IntentRule(
        "price_simple",
        re.compile(r"^(.+?)\s+price$", re.IGNORECASE),
        _build_price,
    ),
    IntentRule(
        "add_holding",
        re.compile(
            r"(?:i have|i own|add|buy|bought)\s+(\d+(?:\.\d+)?)\s+(.+?)"
            r"(?:\s+(?:coins?|tokens?))?$",
            re.IGNORECASE,
        ),
        _build_add_holding,
    ),
    IntentRule(
        "portfolio",
        re.compile(
            r"\b(?:portfolio|holdings|total value|how much)\b", re.IGNORECASE
        ),
        _constant(PortfolioValue()),
    ),
    IntentRule(
        "trending",
        re.compile(
            r"\b(?:trending|hot|popular|top)\b"
            r"\s*(?:coins?|crypto|cryptocurrenc(?:y|ies))?",
            re.IGNORECASE,
        ),
        _constant(Trending()),
    ),
    IntentRule(
        "chart",
        re.compile(
            r"(?:chart|graph|price chart|show chart)\s+(?:for\s+)?(.+?)"
            r"(?:\s+(?:7\s*days?|week|weekly))?$",
            re.IGNORECASE,
        ),
        _build_chart,
    ),
    IntentRule(
        "info",
        re.compile(
            r"(?:tell me about|info about|information about|what is)\s+(.+)",
            re.IGNORECASE,
        ),
        _build_info,
    ),
    IntentRule(
        "help",
        re.compile(r"^(?:help|what can you do|commands)$", re.IGNORECASE),
        _constant(Help()),
    ),
)


def parse_message(message: str) -> Intent:
    """Classify a chat message. Never raises; unmatched text becomes General."""
    trimmed = message.strip()

    for rule in RULES:
        match = rule.pattern.search(trimmed)
        if match is None:
            continue
        intent = rule.build(match, trimmed)
        if intent is not None:
            return intent

    return General(text=trimmed)
