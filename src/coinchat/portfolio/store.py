"""Persisted holdings ledger with market valuation.

Holdings are merged by coin id, persisted after every mutation, and
revalued from one batched price request. Every mutation replaces the
holding list with a new one built from the current list, so a revaluation
that awaits prices never writes back a stale snapshot over a concurrent
add or removal.
"""

import asyncio
import json
import math
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field, fields, replace
from uuid import uuid4

from coinchat.exceptions import MarketDataError
from coinchat.logging import get_logger
from coinchat.market_data.data_client import MarketDataClient
from coinchat.models import Holding
from coinchat.storage.base import KeyValueStorage

logger = get_logger(__name__)

_HOLDING_FIELDS = {f.name for f in fields(Holding)}


@dataclass(frozen=True)
class HoldingShare(Holding):
    """A holding annotated with its share of total portfolio value (0-100)."""

    percentage: float = 0.0


@dataclass
class PortfolioSummary:
    """Point-in-time view of the portfolio for replies and the API."""

    total_coins: int
    total_value: float
    change_24h: float  # value-weighted percent
    holdings: list[HoldingShare] = field(default_factory=list)
    last_refreshed_at: float | None = None


def weighted_change_24h(holdings: list[Holding]) -> float:
    """Value-weighted average of per-holding 24h change, in percent.

    Holdings without change data or without a value are left out of both
    the numerator and the denominator.
    """
    included = [
        h for h in holdings if h.change_24h is not None and h.current_value
    ]
    denominator = sum(h.current_value for h in included)  # type: ignore[misc]
    if denominator <= 0:
        return 0.0
    return sum(h.change_24h * h.current_value for h in included) / denominator  # type: ignore[operator]


class PortfolioStore:
    """Owns the holdings ledger.

    Args:
        market_data: Client used for batched price lookups.
        storage: Load/save collaborator for the serialized ledger.
        storage_key: Key the ledger is saved under.
        refresh_interval: Seconds between background revaluations.
        clock: Wall-clock time source for timestamps, injectable for tests.
    """

    def __init__(
        self,
        market_data: MarketDataClient,
        storage: KeyValueStorage,
        storage_key: str = "crypto-chat-portfolio",
        refresh_interval: float = 300.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._market_data = market_data
        self._storage = storage
        self._storage_key = storage_key
        self._refresh_interval = refresh_interval
        self._clock = clock
        self._holdings: list[Holding] = []
        self._last_refreshed_at: float | None = None
        self._last_error: str | None = None
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    # ──────────────────────────────────────────────
    # Read access
    # ──────────────────────────────────────────────

    @property
    def holdings(self) -> list[Holding]:
        return list(self._holdings)

    @property
    def total_value(self) -> float:
        """Sum of the last known value of every holding."""
        return sum(h.current_value for h in self._holdings if h.current_value is not None)

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def last_refreshed_at(self) -> float | None:
        return self._last_refreshed_at

    def get_holding(self, holding_id: str) -> Holding | None:
        return next((h for h in self._holdings if h.id == holding_id), None)

    def find_holding(self, coin_id: str) -> Holding | None:
        return next((h for h in self._holdings if h.coin_id == coin_id), None)

    # ──────────────────────────────────────────────
    # Persistence
    # ──────────────────────────────────────────────

    async def load(self) -> None:
        """Load the saved ledger. Any failure is logged and leaves it empty."""
        try:
            raw = await self._storage.load(self._storage_key)
            if raw is None:
                self._holdings = []
            else:
                self._holdings = [
                    Holding(**{k: v for k, v in item.items() if k in _HOLDING_FIELDS})
                    for item in json.loads(raw)
                ]
        except Exception:
            logger.warning("portfolio_load_failed", key=self._storage_key, exc_info=True)
            self._holdings = []
            return
        logger.info("portfolio_loaded", holdings=len(self._holdings))

    async def _save(self) -> None:
        payload = json.dumps([asdict(h) for h in self._holdings])
        try:
            await self._storage.save(self._storage_key, payload)
        except Exception:
            logger.error("portfolio_save_failed", key=self._storage_key, exc_info=True)

    # ──────────────────────────────────────────────
    # Mutations
    # ──────────────────────────────────────────────

    async def add_holding(
        self, coin_id: str, display_name: str, symbol: str, amount: float
    ) -> Holding:
        """Add ``amount`` of a coin, merging into an existing holding if present.

        Raises:
            ValueError: If amount is not a positive finite number.
        """
        if not math.isfinite(amount) or amount <= 0:
            raise ValueError(f"Holding amount must be positive, got {amount}")

        now = self._clock()
        existing = self.find_holding(coin_id)
        if existing is not None:
            merged = self._with_amount(existing, existing.amount + amount, now)
            self._holdings = [merged if h.id == existing.id else h for h in self._holdings]
            result = merged
        else:
            result = Holding(
                id=uuid4().hex,
                coin_id=coin_id,
                display_name=display_name,
                symbol=symbol.upper(),
                amount=amount,
                added_at=now,
                last_updated=now,
            )
            self._holdings = [*self._holdings, result]

        logger.info(
            "holding_added",
            coin_id=coin_id,
            added=amount,
            amount=result.amount,
            merged=existing is not None,
        )
        await self._save()
        return result

    async def remove_holding(self, holding_id: str) -> bool:
        """Remove a holding by id. Returns False if it did not exist."""
        remaining = [h for h in self._holdings if h.id != holding_id]
        if len(remaining) == len(self._holdings):
            return False
        self._holdings = remaining
        logger.info("holding_removed", holding_id=holding_id)
        await self._save()
        return True

    async def update_holding(self, holding_id: str, new_amount: float) -> Holding | None:
        """Set a holding's amount; zero or below removes it.

        Returns the updated holding, or None if it was removed or not found.

        Raises:
            ValueError: If new_amount is NaN or infinite.
        """
        if not math.isfinite(new_amount):
            raise ValueError(f"Holding amount must be finite, got {new_amount}")
        if new_amount <= 0:
            await self.remove_holding(holding_id)
            return None

        holding = self.get_holding(holding_id)
        if holding is None:
            return None

        updated = self._with_amount(holding, new_amount, self._clock())
        self._holdings = [updated if h.id == holding_id else h for h in self._holdings]
        logger.info("holding_updated", holding_id=holding_id, amount=new_amount)
        await self._save()
        return updated

    async def clear(self) -> None:
        self._holdings = []
        self._last_refreshed_at = None
        logger.info("portfolio_cleared")
        await self._save()

    @staticmethod
    def _with_amount(holding: Holding, amount: float, now: float) -> Holding:
        value = amount * holding.current_price if holding.current_price is not None else None
        return replace(holding, amount=amount, current_value=value, last_updated=now)

    # ──────────────────────────────────────────────
    # Valuation
    # ──────────────────────────────────────────────

    async def refresh_valuation(self) -> float:
        """Revalue every holding from one batched price request.

        Holdings the source has no price for keep their previous values.
        Returns the new total value.

        Raises:
            MarketDataError: If the price request fails. ``last_error`` is set.
        """
        if not self._holdings:
            return 0.0

        coin_ids = list(dict.fromkeys(h.coin_id for h in self._holdings))
        try:
            prices = await self._market_data.get_multiple_prices(coin_ids)
        except MarketDataError as e:
            self._last_error = "Failed to update portfolio values"
            logger.warning("portfolio_revalue_failed", error=str(e))
            raise

        vs = self._market_data.vs_currency
        now = self._clock()

        def _revalue(holding: Holding) -> Holding:
            record = prices.get(holding.coin_id)
            if not record or record.get(vs) is None:
                return holding
            price = record[vs]
            return replace(
                holding,
                current_price=price,
                current_value=holding.amount * price,
                change_24h=record.get(f"{vs}_24h_change"),
                last_updated=now,
            )

        # Rebuild from the list as it is now, not as it was before the await
        self._holdings = [_revalue(h) for h in self._holdings]
        self._last_error = None
        self._last_refreshed_at = now

        total = self.total_value
        logger.info("portfolio_revalued", holdings=len(self._holdings), total_value=total)
        await self._save()
        return total

    def summary(self) -> PortfolioSummary:
        """Holdings with value shares plus the aggregate 24h change."""
        total = self.total_value
        shares = [
            HoldingShare(
                **asdict(h),
                percentage=(h.current_value or 0.0) / total * 100 if total > 0 else 0.0,
            )
            for h in self._holdings
        ]
        return PortfolioSummary(
            total_coins=len(self._holdings),
            total_value=total,
            change_24h=weighted_change_24h(self._holdings),
            holdings=shares,
            last_refreshed_at=self._last_refreshed_at,
        )

    # ──────────────────────────────────────────────
    # Background revaluation
    # ──────────────────────────────────────────────

    async def start(self) -> None:
        """Begin periodic revaluation in the background."""
        if self._running:
            logger.warning("portfolio_refresh_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._refresh_loop())
        logger.info("portfolio_refresh_started", interval=self._refresh_interval)

    async def stop(self) -> None:
        """Stop periodic revaluation."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("portfolio_refresh_stopped")

    async def _refresh_loop(self) -> None:
        while self._running:
            if self._holdings:
                try:
                    await self.refresh_valuation()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.warning("portfolio_refresh_error", exc_info=True)
            if self._running:
                await asyncio.sleep(self._refresh_interval)
