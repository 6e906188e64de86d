"""Response generation: turns an Intent into a Reply.

Dispatches by intent type to the market-data client and the portfolio
store. This is the single error boundary of the chat pipeline: any
exception raised while answering is logged and converted into an
error-flagged Reply carrying the exception's message.
"""

from collections.abc import Awaitable, Callable

from coinchat.chat.formatting import direction_word, format_amount, format_number
from coinchat.chat.reply import Reply
from coinchat.exceptions import ChartDataNotFoundError, MarketDataError
from coinchat.logging import get_logger
from coinchat.market_data.data_client import MarketDataClient
from coinchat.nlu.intents import (
    AddHolding,
    ChartRequest,
    InfoRequest,
    Intent,
    IntentType,
    PriceQuery,
)
from coinchat.portfolio.store import PortfolioStore

logger = get_logger(__name__)

CHART_DAYS = 7
TRENDING_LIMIT = 5

HELP_TEXT = """I can help you with cryptocurrency information! Try asking me:

• "What's Bitcoin trading at?" - Get current prices
• "I have 2 ETH" - Add to your portfolio
• "What's my portfolio worth?" - Check portfolio value
• "Show me trending coins" - See what's hot
• "Show chart for Bitcoin" - View price charts
• "Tell me about Ethereum" - Get coin information

Just speak naturally - I'll understand!"""

GENERAL_TEXT = (
    "I'm not sure how to help with that. Try asking about cryptocurrency prices, "
    "your portfolio, or trending coins. Say 'help' to see what I can do!"
)

EMPTY_PORTFOLIO_TEXT = (
    "Your portfolio is empty. Try adding some holdings by saying something "
    "like 'I have 2 ETH'"
)


class ResponseGenerator:
    """Answers intents using market data and the holdings ledger.

    Args:
        market_data: Cached, rate-limited market-data client.
        portfolio: Holdings ledger.
    """

    def __init__(self, market_data: MarketDataClient, portfolio: PortfolioStore) -> None:
        self._market_data = market_data
        self._portfolio = portfolio
        self._handlers: dict[IntentType, Callable[[Intent], Awaitable[Reply]]] = {
            IntentType.PRICE_QUERY: self._price_query,  # type: ignore[dict-item]
            IntentType.ADD_HOLDING: self._add_holding,  # type: ignore[dict-item]
            IntentType.PORTFOLIO_VALUE: self._portfolio_value,
            IntentType.TRENDING: self._trending,
            IntentType.CHART_REQUEST: self._chart,  # type: ignore[dict-item]
            IntentType.INFO_REQUEST: self._info,  # type: ignore[dict-item]
            IntentType.HELP: self._help,
            IntentType.GENERAL: self._general,
        }

    async def generate(self, intent: Intent) -> Reply:
        """Build the reply for ``intent``. Never raises."""
        try:
            return await self._handlers[intent.type](intent)
        except Exception as e:
            logger.error(
                "response_generation_failed",
                intent=intent.type.value,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            message = str(e).rstrip(".") or type(e).__name__
            return Reply(
                text=f"Sorry, I encountered an error: {message}. Please try again.",
                error=True,
            )

    async def _price_query(self, intent: PriceQuery) -> Reply:
        quote = await self._market_data.get_current_price(intent.coin_id)
        change = quote.change_24h or 0.0
        return Reply(
            text=(
                f"{intent.raw_name.upper()} is currently trading at "
                f"${format_number(quote.price)} "
                f"({direction_word(change)} {abs(change):.2f}% in 24h)"
            ),
            data={
                "price_data": quote,
                "change_color": "positive" if change > 0 else "negative",
            },
        )

    async def _add_holding(self, intent: AddHolding) -> Reply:
        details = await self._market_data.get_coin_details(intent.coin_id)
        holding = await self._portfolio.add_holding(
            intent.coin_id, details.name, details.symbol, intent.amount
        )

        if details.current_price is not None:
            value_text = f"${format_number(intent.amount * details.current_price)}"
        else:
            value_text = "unavailable"
        return Reply(
            text=(
                f"Added {format_amount(intent.amount)} {details.symbol} to your "
                f"portfolio! Current value: {value_text}"
            ),
            data={"coin_details": details, "amount": intent.amount, "holding": holding},
        )

    async def _portfolio_value(self, intent: Intent) -> Reply:
        if self._portfolio.holdings:
            try:
                await self._portfolio.refresh_valuation()
            except MarketDataError as e:
                # Fall back to the last successful valuation
                logger.warning("portfolio_summary_stale", error=str(e))

        summary = self._portfolio.summary()
        if summary.total_coins == 0:
            return Reply(text=EMPTY_PORTFOLIO_TEXT)

        change = summary.change_24h
        return Reply(
            text=(
                f"Your portfolio is worth ${format_number(summary.total_value)} "
                f"across {summary.total_coins} different cryptocurrencies "
                f"({direction_word(change)} {abs(change):.2f}% today)"
            ),
            data={"summary": summary},
        )

    async def _trending(self, intent: Intent) -> Reply:
        trending = await self._market_data.get_trending_coins()
        ranked = "\n".join(
            f"{index}. {coin.name} ({coin.symbol})"
            for index, coin in enumerate(trending[:TRENDING_LIMIT], start=1)
        )
        return Reply(
            text=f"Here are today's top trending cryptocurrencies:\n\n{ranked}",
            data={"trending": trending},
        )

    async def _chart(self, intent: ChartRequest) -> Reply:
        try:
            details = await self._market_data.get_coin_details(intent.coin_id)
            chart_data = await self._market_data.get_historical_data(
                intent.coin_id, CHART_DAYS
            )
            coin_name = details.name
        except Exception as e:
            logger.info(
                "chart_lookup_fallback_to_search",
                coin_id=intent.coin_id,
                raw_name=intent.raw_name,
                error=str(e),
            )
            coin_name, chart_data = await self._chart_from_search(intent.raw_name)

        return Reply(
            text=f"Here's the {CHART_DAYS}-day price chart for {coin_name}:",
            data={"chart_data": chart_data, "coin_name": coin_name},
            show_chart=True,
        )

    async def _chart_from_search(self, raw_name: str) -> tuple[str, list]:
        try:
            results = await self._market_data.search_coins(raw_name)
            if results:
                first = results[0]
                chart_data = await self._market_data.get_historical_data(
                    first.id, CHART_DAYS
                )
                return first.name, chart_data
        except Exception as e:
            logger.warning("chart_search_fallback_failed", raw_name=raw_name, error=str(e))
        raise ChartDataNotFoundError(raw_name)

    async def _info(self, intent: InfoRequest) -> Reply:
        info = await self._market_data.get_coin_details(intent.coin_id)
        rank = info.rank if info.rank is not None else "N/A"
        market_cap = format_number(info.market_cap) if info.market_cap else "N/A"
        return Reply(
            text=(
                f"{info.name} ({info.symbol}) is currently ranked #{rank} with a "
                f"market cap of ${market_cap}. {info.description}"
            ),
            data={"info": info},
        )

    async def _help(self, intent: Intent) -> Reply:
        return Reply(text=HELP_TEXT)

    async def _general(self, intent: Intent) -> Reply:
        return Reply(text=GENERAL_TEXT)
