"""Custom exceptions for the crypto chat assistant.

Market-data and chat-layer exceptions live here to avoid circular
imports between the client, the portfolio store and the responder.
"""


class CoinChatError(Exception):
    """Base exception for all coinchat errors."""


class MarketDataError(CoinChatError):
    """Base for failures talking to the market-data source."""


class RateLimitedError(MarketDataError):
    """Raised when a local rate limiter denies admission. No request was sent."""


class RequestTimeoutError(MarketDataError):
    """Raised when the transport's connect/read timeout elapses."""


class NetworkUnreachableError(MarketDataError):
    """Raised when the data source cannot be reached at all."""


class UpstreamStatusError(MarketDataError):
    """Raised when the data source answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class CoinNotFoundError(MarketDataError):
    """Raised when the queried coin id is absent from the response."""

    def __init__(self, coin_id: str) -> None:
        super().__init__(f'Cryptocurrency "{coin_id}" not found')
        self.coin_id = coin_id


class ChartDataNotFoundError(CoinChatError):
    """Raised when neither the resolved id nor a search hit yields chart data."""

    def __init__(self, raw_name: str) -> None:
        super().__init__(
            f'Could not find chart data for "{raw_name}". '
            "Try using the full name or symbol."
        )
        self.raw_name = raw_name
