"""
Bootstrap module for application initialization.
Picks the storage backend from settings and wires the core services on top of it.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from netscan.config import settings
from netscan.core.db import close_db, init_db
from netscan.services.access import AccessGate
from netscan.services.credentials import CredentialStore
from netscan.services.history import HistoryStore
from netscan.services.sessions import SessionAuthenticator
from netscan.services.stats import StatsAggregator
from netscan.storage.base import StorageBackend
from netscan.storage.factory import get_storage

logger = logging.getLogger("uvicorn.error")


@dataclass
class Services:
    """Everything a request handler needs, sharing one storage backend"""
    storage: StorageBackend
    credentials: CredentialStore
    sessions: SessionAuthenticator
    history: HistoryStore
    stats: StatsAggregator
    gate: AccessGate
    started_at: float = field(default_factory=time.monotonic)


_services: Optional[Services] = None


def configure_services(storage: StorageBackend, max_history: Optional[int] = None) -> Services:
    """
    Build the service graph over ``storage`` and make it the active one.
    Tests call this directly with a fresh backend.
    """
    global _services
    sessions = SessionAuthenticator(storage)
    history = HistoryStore(storage, max_records=max_history or settings.max_history_per_user)
    _services = Services(
        storage=storage,
        credentials=CredentialStore(storage),
        sessions=sessions,
        history=history,
        stats=StatsAggregator(history),
        gate=AccessGate(sessions),
    )
    return _services


def get_services() -> Services:
    if _services is None:
        raise RuntimeError("Services not initialised; call init_services() at startup")
    return _services


async def init_services() -> Services:
    """
    Startup hook: open the database when the ORM backend is selected, then wire services.
    For SQLite URLs missing tables are created; other databases rely on Aerich migrations.
    """
    storage = get_storage(settings.storage_backend)
    if storage.name == "tortoise":
        await init_db(generate_schemas=settings.database_url.startswith("sqlite"))
    logger.info("[bootstrap] storage backend=%s max_history_per_user=%d",
                storage.name, settings.max_history_per_user)
    return configure_services(storage)


async def close_services() -> None:
    global _services
    if _services is not None and _services.storage.name == "tortoise":
        await close_db()
    _services = None
