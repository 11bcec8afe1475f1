"""
Storage Module

Persistence behind one capability interface:
- base: StorageBackend interface and the Identity / HistoryRecord records
- memory: in-process dictionaries
- tortoise_store: Tortoise ORM (PostgreSQL / SQLite)
"""

from .base import (
    HistoryRecord,
    Identity,
    IdentityRecord,
    StorageBackend,
)
from .factory import get_storage
from .memory import MemoryStorage

__all__ = [
    "HistoryRecord",
    "Identity",
    "IdentityRecord",
    "StorageBackend",
    "get_storage",
    "MemoryStorage",
]
