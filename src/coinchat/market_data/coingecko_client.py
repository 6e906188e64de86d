"""CoinGecko HTTP client implementation via httpx async.

Wraps a shared httpx.AsyncClient with query encoding, an optional direct-call
rate limiter, and mapping of transport/status failures onto the
MarketDataError hierarchy.
"""

from collections.abc import Mapping
from typing import Any

import httpx

from coinchat.config import CoinGeckoSettings
from coinchat.exceptions import (
    MarketDataError,
    NetworkUnreachableError,
    RateLimitedError,
    RequestTimeoutError,
    UpstreamStatusError,
)
from coinchat.logging import get_logger
from coinchat.market_data.rate_limiter import SlidingWindowRateLimiter
from coinchat.market_data.source import MarketDataSource

logger = get_logger(__name__)


def encode_params(params: Mapping[str, Any] | None) -> dict[str, str]:
    """Encode query params the way CoinGecko expects.

    None values are omitted, booleans become "true"/"false" and sequences
    are comma-joined.
    """
    encoded: dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            encoded[key] = ",".join(str(v) for v in value)
        else:
            encoded[key] = str(value)
    return encoded


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return "Unknown error"
    if isinstance(body, dict):
        detail = body.get("error") or body.get("message")
        if isinstance(detail, dict):
            detail = detail.get("error_message") or detail.get("message")
        if detail:
            return str(detail)
    return "Unknown error"


class CoinGeckoClient(MarketDataSource):
    """Concrete CoinGecko client using httpx async.

    Args:
        settings: Base URL, API key and timeout.
        rate_limiter: Direct-call limiter checked before every request.
            None disables admission control at this layer.
        transport: Optional httpx transport, used by tests to mock the network.
    """

    def __init__(
        self,
        settings: CoinGeckoSettings,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._rate_limiter = rate_limiter

        headers = {"Accept": "application/json", "User-Agent": "CoinChat/1.0"}
        api_key = settings.api_key.get_secret_value()
        if api_key:
            headers["x-cg-demo-api-key"] = api_key

        self._client = httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            headers=headers,
            transport=transport,
        )

    def admits_request(self) -> bool:
        return self._rate_limiter is None or self._rate_limiter.admit()

    async def get_json(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> Any:
        """GET a CoinGecko endpoint and return the decoded body."""
        if self._rate_limiter is not None and not self._rate_limiter.try_acquire():
            raise RateLimitedError("Rate limit exceeded. Please wait a moment.")

        query = encode_params(params)
        try:
            response = await self._client.get(path, params=query)
        except httpx.TimeoutException as e:
            logger.warning("coingecko_timeout", path=path)
            raise RequestTimeoutError(
                "Request timeout. Please check your connection."
            ) from e
        except httpx.TransportError as e:
            logger.warning("coingecko_unreachable", path=path, error=str(e))
            raise NetworkUnreachableError(
                "Network error. Please check your internet connection."
            ) from e

        if response.status_code == 429:
            logger.warning("coingecko_rate_limited", path=path)
            raise UpstreamStatusError(
                429, "API rate limit exceeded. Please try again in a minute."
            )
        if not response.is_success:
            detail = _error_detail(response)
            logger.warning(
                "coingecko_error_status",
                path=path,
                status=response.status_code,
                detail=detail,
            )
            raise UpstreamStatusError(
                response.status_code,
                f"API Error: {response.status_code} - {detail}",
            )

        try:
            return response.json()
        except ValueError as e:
            logger.warning("coingecko_invalid_json", path=path)
            raise MarketDataError("Invalid response from market-data source") from e

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self._client.aclose()
        logger.info("coingecko_client_closed")
