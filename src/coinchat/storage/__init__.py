"""Persistence collaborators: key/value load/save contract and implementations."""

from coinchat.storage.base import KeyValueStorage, MemoryStorage
from coinchat.storage.sqlite_storage import SqliteStorage

__all__ = ["KeyValueStorage", "MemoryStorage", "SqliteStorage"]
