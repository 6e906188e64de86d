"""Entry point for the crypto chat assistant.

Wires all components together and either serves the chat API with uvicorn
(default) or, with API_ENABLED=false, runs an interactive console chat on
stdin. Both modes share the same startup/shutdown sequence.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. Rate limiters (direct 10/min, orchestration 50/min)
4. CoinGeckoClient (raw HTTP, direct limiter)
5. ResponseCache (5 min TTL, 10 min sweep)
6. MarketDataClient (cache + orchestration limiter)
7. SqliteStorage (persistence collaborator)
8. PortfolioStore (holdings ledger)
9. ResponseGenerator + ChatService
"""

import asyncio
import sys
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from coinchat.chat.responder import ResponseGenerator
from coinchat.chat.service import ChatService
from coinchat.config import AppSettings
from coinchat.logging import get_logger, setup_logging
from coinchat.market_data.coingecko_client import CoinGeckoClient
from coinchat.market_data.data_client import MarketDataClient
from coinchat.market_data.rate_limiter import SlidingWindowRateLimiter
from coinchat.market_data.response_cache import ResponseCache
from coinchat.portfolio.store import PortfolioStore
from coinchat.storage.sqlite_storage import SqliteStorage


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Does NOT open storage or start background tasks; that happens in
    _startup() so both run modes share it.
    """
    direct_limiter = SlidingWindowRateLimiter(
        settings.rate_limit.direct_max_requests_per_minute,
        settings.rate_limit.window_seconds,
        name="direct",
    )
    orchestration_limiter = SlidingWindowRateLimiter(
        settings.rate_limit.max_requests_per_minute,
        settings.rate_limit.window_seconds,
        name="orchestration",
    )

    source = CoinGeckoClient(settings.coingecko, rate_limiter=direct_limiter)
    cache = ResponseCache(
        ttl_seconds=settings.cache.ttl_seconds,
        cleanup_interval=settings.cache.cleanup_interval_seconds,
    )
    market_data = MarketDataClient(
        source, cache, orchestration_limiter, vs_currency=settings.coingecko.vs_currency
    )

    storage = SqliteStorage(settings.portfolio.db_path)
    portfolio = PortfolioStore(
        market_data,
        storage,
        storage_key=settings.portfolio.storage_key,
        refresh_interval=settings.portfolio.refresh_interval_seconds,
    )

    responder = ResponseGenerator(market_data, portfolio)
    chat_service = ChatService(responder)

    return {
        "source": source,
        "cache": cache,
        "market_data": market_data,
        "storage": storage,
        "portfolio": portfolio,
        "responder": responder,
        "chat_service": chat_service,
    }


async def _startup(components: dict[str, Any]) -> None:
    await components["storage"].connect()
    await components["portfolio"].load()
    await components["cache"].start()
    await components["portfolio"].start()


async def _shutdown(components: dict[str, Any]) -> None:
    logger = get_logger("coinchat.main")
    await components["portfolio"].stop()
    await components["cache"].stop()
    await components["source"].close()
    await components["storage"].close()
    logger.info("coinchat_stopped")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start components before serving and stop them on shutdown."""
    logger = get_logger("coinchat.main")
    components = app.state.components

    app.state.chat_service = components["chat_service"]
    app.state.portfolio = components["portfolio"]
    app.state.market_data = components["market_data"]

    await _startup(components)
    logger.info("lifespan_started")

    try:
        yield
    finally:
        await _shutdown(components)


async def _console_loop(chat_service: ChatService) -> None:
    """Read messages from stdin until EOF or "quit"."""
    print("CoinChat ready. Type 'help' for ideas, 'quit' to exit.")
    while True:
        # readline blocks, so keep it off the event loop thread
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            break
        message = line.strip()
        if not message:
            continue
        if message.lower() in ("quit", "exit"):
            break

        reply = await chat_service.handle_message(message)
        print(reply.text)


async def run() -> None:
    """Run the assistant in API or console mode."""
    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("coinchat.main")

    # 3-9. Build all components
    components = _build_components(settings)

    if settings.api.enabled:
        from coinchat.api.app import create_api_app

        app = create_api_app(lifespan=lifespan)
        app.state.components = components

        logger.info("starting_api", host=settings.api.host, port=settings.api.port)

        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        logger.info("starting_console")
        await _startup(components)
        try:
            await _console_loop(components["chat_service"])
        finally:
            await _shutdown(components)


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
