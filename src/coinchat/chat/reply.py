"""Reply payload handed to UI and voice collaborators."""

from dataclasses import dataclass
from typing import Any


@dataclass
class Reply:
    """Structured chat reply.

    ``show_chart`` asks the UI to render ``data["chart_data"]``; ``error``
    flags replies that describe a failure.
    """

    text: str
    data: dict[str, Any] | None = None
    show_chart: bool = False
    error: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Outward shape: ``{text, data, showChart, error}``."""
        return {
            "text": self.text,
            "data": self.data,
            "showChart": self.show_chart,
            "error": self.error,
        }
