"""FastAPI application factory for the chat API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from coinchat.api import routes


def create_api_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the chat API application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.

    Route handlers read ``chat_service``, ``portfolio`` and ``market_data``
    from ``app.state``; the lifespan (or a test) must set them.
    """
    app = FastAPI(
        title="CoinChat API",
        lifespan=lifespan,
    )
    app.include_router(routes.router, prefix="/api")
    return app
