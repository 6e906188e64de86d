"""JSON API endpoints for chat, portfolio management, market data and cache control."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from coinchat.exceptions import MarketDataError, RateLimitedError, UpstreamStatusError

log = structlog.get_logger(__name__)

router = APIRouter()


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)


class HoldingUpdate(BaseModel):
    amount: float = Field(allow_inf_nan=False)


def _market_error_response(e: MarketDataError) -> JSONResponse:
    """Map a market-data failure onto an HTTP status."""
    if isinstance(e, RateLimitedError):
        status = 429
    elif isinstance(e, UpstreamStatusError) and e.status_code == 429:
        status = 429
    else:
        status = 503
    log.warning("market_data_request_failed", error=str(e), status=status)
    return JSONResponse(status_code=status, content={"error": str(e)})


def _json(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


@router.get("/health")
async def health() -> JSONResponse:
    return JSONResponse(content={"status": "ok"})


@router.post("/chat")
async def chat(request: Request, body: ChatRequest) -> JSONResponse:
    """Answer one chat message with ``{text, data, showChart, error}``."""
    reply = await request.app.state.chat_service.handle_message(body.message)
    return _json(reply.to_dict())


@router.get("/portfolio")
async def get_portfolio(request: Request) -> JSONResponse:
    return _json(request.app.state.portfolio.summary())


@router.post("/portfolio/refresh")
async def refresh_portfolio(request: Request) -> JSONResponse:
    portfolio = request.app.state.portfolio
    try:
        await portfolio.refresh_valuation()
    except MarketDataError as e:
        return _market_error_response(e)
    return _json(portfolio.summary())


@router.patch("/portfolio/holdings/{holding_id}")
async def update_holding(
    request: Request, holding_id: str, body: HoldingUpdate
) -> JSONResponse:
    """Set a holding's amount. Zero or below removes the holding."""
    portfolio = request.app.state.portfolio
    if portfolio.get_holding(holding_id) is None:
        return JSONResponse(status_code=404, content={"error": "Holding not found"})

    updated = await portfolio.update_holding(holding_id, body.amount)
    if updated is None:
        return JSONResponse(content={"removed": True, "id": holding_id})
    return _json(asdict(updated))


@router.delete("/portfolio/holdings/{holding_id}")
async def remove_holding(request: Request, holding_id: str) -> JSONResponse:
    removed = await request.app.state.portfolio.remove_holding(holding_id)
    if not removed:
        return JSONResponse(status_code=404, content={"error": "Holding not found"})
    return JSONResponse(content={"removed": True, "id": holding_id})


@router.delete("/portfolio")
async def clear_portfolio(request: Request) -> JSONResponse:
    await request.app.state.portfolio.clear()
    return JSONResponse(content={"cleared": True})


@router.get("/market/global")
async def get_global_data(request: Request) -> JSONResponse:
    try:
        data = await request.app.state.market_data.get_global_data()
    except MarketDataError as e:
        return _market_error_response(e)
    return _json(data)


@router.get("/market/overview")
async def get_market_overview(
    request: Request, per_page: int = 100, page: int = 1
) -> JSONResponse:
    try:
        data = await request.app.state.market_data.get_market_overview(per_page, page)
    except MarketDataError as e:
        return _market_error_response(e)
    return _json(data)


@router.get("/market/exchange-rates")
async def get_exchange_rates(request: Request) -> JSONResponse:
    try:
        data = await request.app.state.market_data.get_exchange_rates()
    except MarketDataError as e:
        return _market_error_response(e)
    return _json(data)


@router.get("/cache/stats")
async def get_cache_stats(request: Request) -> JSONResponse:
    return _json(request.app.state.market_data.cache_stats())


@router.delete("/cache")
async def clear_cache(request: Request) -> JSONResponse:
    request.app.state.market_data.clear_cache()
    log.info("cache_cleared_via_api")
    return JSONResponse(content={"cleared": True})
