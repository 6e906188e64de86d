"""Abstract key/value persistence contract used by the portfolio store."""

from abc import ABC, abstractmethod


class KeyValueStorage(ABC):
    """Stores serialized strings under string keys."""

    @abstractmethod
    async def load(self, key: str) -> str | None:
        """Return the value saved under ``key``, or None if nothing was saved."""
        ...

    @abstractmethod
    async def save(self, key: str, value: str) -> None:
        """Save ``value`` under ``key``, replacing any previous value."""
        ...


class MemoryStorage(KeyValueStorage):
    """Process-local storage. Nothing survives a restart."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def load(self, key: str) -> str | None:
        return self._values.get(key)

    async def save(self, key: str, value: str) -> None:
        self._values[key] = value
