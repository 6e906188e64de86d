"""Tests for CoinGeckoClient.

The network is replaced with httpx.MockTransport so every test runs offline.
"""

import httpx
import pytest
from pydantic import SecretStr

from coinchat.config import CoinGeckoSettings
from coinchat.exceptions import (
    MarketDataError,
    NetworkUnreachableError,
    RateLimitedError,
    RequestTimeoutError,
    UpstreamStatusError,
)
from coinchat.market_data.coingecko_client import CoinGeckoClient, encode_params
from coinchat.market_data.rate_limiter import SlidingWindowRateLimiter


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _settings(**overrides) -> CoinGeckoSettings:
    return CoinGeckoSettings(base_url="https://api.test/api/v3", **overrides)


def _client(handler, rate_limiter=None, **overrides) -> CoinGeckoClient:
    return CoinGeckoClient(
        _settings(**overrides),
        rate_limiter=rate_limiter,
        transport=httpx.MockTransport(handler),
    )


class TestEncodeParams:
    def test_omits_none_and_encodes_bools_and_lists(self) -> None:
        encoded = encode_params(
            {
                "ids": ["bitcoin", "ethereum"],
                "include_24hr_change": True,
                "sparkline": False,
                "page": None,
                "days": 7,
            }
        )

        assert encoded == {
            "ids": "bitcoin,ethereum",
            "include_24hr_change": "true",
            "sparkline": "false",
            "days": "7",
        }

    def test_empty(self) -> None:
        assert encode_params(None) == {}


class TestSuccessfulRequests:
    @pytest.mark.asyncio
    async def test_returns_decoded_body_and_sends_query(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"bitcoin": {"usd": 50000}})

        client = _client(handler)
        try:
            data = await client.get_json(
                "/simple/price", {"ids": "bitcoin", "include_24hr_change": True}
            )
        finally:
            await client.close()

        assert data == {"bitcoin": {"usd": 50000}}
        assert seen[0].url.path == "/api/v3/simple/price"
        assert seen[0].url.params["ids"] == "bitcoin"
        assert seen[0].url.params["include_24hr_change"] == "true"

    @pytest.mark.asyncio
    async def test_sends_demo_api_key_when_configured(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        client = _client(handler, api_key=SecretStr("demo-key"))
        try:
            await client.get_json("/global")
        finally:
            await client.close()

        assert seen[0].headers["x-cg-demo-api-key"] == "demo-key"

    @pytest.mark.asyncio
    async def test_no_api_key_header_by_default(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        client = _client(handler)
        try:
            await client.get_json("/global")
        finally:
            await client.close()

        assert "x-cg-demo-api-key" not in seen[0].headers


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_429_maps_to_rate_limit_message(self) -> None:
        client = _client(lambda request: httpx.Response(429, json={}))

        with pytest.raises(UpstreamStatusError) as exc_info:
            await client.get_json("/global")
        await client.close()

        assert exc_info.value.status_code == 429
        assert "rate limit" in str(exc_info.value).lower()

    @pytest.mark.asyncio
    async def test_error_status_includes_upstream_detail(self) -> None:
        client = _client(
            lambda request: httpx.Response(404, json={"error": "coin not found"})
        )

        with pytest.raises(UpstreamStatusError) as exc_info:
            await client.get_json("/coins/nope")
        await client.close()

        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "API Error: 404 - coin not found"

    @pytest.mark.asyncio
    async def test_error_status_without_json_body(self) -> None:
        client = _client(lambda request: httpx.Response(500, text="<html>oops</html>"))

        with pytest.raises(UpstreamStatusError) as exc_info:
            await client.get_json("/global")
        await client.close()

        assert str(exc_info.value) == "API Error: 500 - Unknown error"

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = _client(handler)
        with pytest.raises(RequestTimeoutError):
            await client.get_json("/global")
        await client.close()

    @pytest.mark.asyncio
    async def test_unreachable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)
        with pytest.raises(NetworkUnreachableError):
            await client.get_json("/global")
        await client.close()

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        client = _client(lambda request: httpx.Response(200, text="not json"))

        with pytest.raises(MarketDataError):
            await client.get_json("/global")
        await client.close()

    def test_all_failures_share_the_market_data_base(self) -> None:
        assert issubclass(RequestTimeoutError, MarketDataError)
        assert issubclass(NetworkUnreachableError, MarketDataError)
        assert issubclass(UpstreamStatusError, MarketDataError)


class TestDirectRateLimit:
    @pytest.mark.asyncio
    async def test_denied_request_is_never_sent(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json={})

        client = _client(handler, rate_limiter=SlidingWindowRateLimiter(1, 60))
        await client.get_json("/global")

        with pytest.raises(RateLimitedError):
            await client.get_json("/global")
        await client.close()

        assert calls == 1

    def test_admits_request_reflects_limiter_without_recording(self) -> None:
        limiter = SlidingWindowRateLimiter(1, 60)
        client = _client(lambda request: httpx.Response(200, json={}), rate_limiter=limiter)

        assert client.admits_request() is True
        assert limiter.in_window() == 0

        limiter.record()
        assert client.admits_request() is False

    def test_admits_request_without_limiter(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={}))

        assert client.admits_request() is True
