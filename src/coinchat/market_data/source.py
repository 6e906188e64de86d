"""Abstract market-data source interface.

The data client and everything above it depend only on this contract,
keeping CoinGecko HTTP details isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class MarketDataSource(ABC):
    """Read-only JSON endpoint access for a market-data provider."""

    @abstractmethod
    async def get_json(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> Any:
        """GET ``path`` with query ``params`` and return the decoded JSON body.

        Implementations raise MarketDataError subclasses for transport and
        status failures. None-valued params must be omitted, not sent empty.
        """
        ...

    def admits_request(self) -> bool:
        """Whether the source's own admission control would let a request through now.

        Sources without a limiter of their own always admit.
        """
        return True

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        ...
