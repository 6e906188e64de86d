"""HTTP surface for chat and portfolio management."""

from coinchat.api.app import create_api_app

__all__ = ["create_api_app"]
