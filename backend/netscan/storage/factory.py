"""
Storage Backend Factory

Maps the STORAGE_BACKEND setting to a backend instance.
"""
from .base import StorageBackend
from .memory import MemoryStorage


def get_storage(backend: str) -> StorageBackend:
    """
    Get a storage backend by name

    Parameters:
    - backend: "memory" or "tortoise"

    Returns:
    - StorageBackend: a fresh backend instance

    Note:
    - "tortoise" needs netscan.core.db.init_db() to have run before first use
    """
    name = (backend or "").strip().lower()
    if name == "memory":
        return MemoryStorage()
    if name == "tortoise":
        # Imported lazily so the memory backend works without ORM models registered
        from .tortoise_store import TortoiseStorage
        return TortoiseStorage()
    raise ValueError(f"Unknown storage backend: {backend!r} (expected 'memory' or 'tortoise')")
