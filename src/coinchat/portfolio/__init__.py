"""Holdings ledger persisted through a key/value storage collaborator."""

from coinchat.portfolio.store import (
    HoldingShare,
    PortfolioStore,
    PortfolioSummary,
    weighted_change_24h,
)

__all__ = ["HoldingShare", "PortfolioStore", "PortfolioSummary", "weighted_change_24h"]
