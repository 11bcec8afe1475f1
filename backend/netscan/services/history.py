"""
History Store

Per-user, newest-first collection of speed-test records with a retention cap.
Once an owner exceeds the cap the oldest entries are evicted without notice:
this is a bounded recent-history cache, not an archive.

All operations on one owner's collection run under that owner's lock, so an
append+evict pair is never interleaved with a read of the same owner.
Different owners use different locks and never wait on each other.
"""
import asyncio
import datetime as dt
import logging
import math
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from netscan.core import errors
from netscan.storage.base import HistoryRecord, StorageBackend

logger = logging.getLogger("uvicorn.error")

DEFAULT_MAX_RECORDS = 100
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Optional free-text fields and their maximum stored length
TEXT_FIELDS: Dict[str, int] = {
    "network_type": 50,
    "isp": 200,
    "ip": 50,
    "location": 200,
}

# Accept either the wire (camelCase) or the attribute (snake_case) spelling
_ALIASES = {
    "downloadSpeed": "download_speed",
    "uploadSpeed": "upload_speed",
    "packetLoss": "packet_loss",
    "networkScore": "network_score",
    "networkType": "network_type",
}


@dataclass
class HistoryPage:
    items: List[HistoryRecord]
    total: int
    page: int
    page_size: int
    total_pages: int


class OwnerLocks:
    """
    One asyncio.Lock per owner id, created on demand and dropped once no task
    holds or waits on it (so idle owners don't accumulate locks).
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, owner_id: str):
        lock = self._locks.setdefault(owner_id, asyncio.Lock())
        self._users[owner_id] = self._users.get(owner_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[owner_id] -= 1
            if not self._users[owner_id]:
                del self._users[owner_id]
                del self._locks[owner_id]

    def __len__(self):
        return len(self._locks)


def _number(data: Mapping[str, Any], key: str, *, integer: bool, low: float = 0, high: Optional[float] = None):
    raw = data.get(key)
    if raw is None or raw == "":
        raise errors.ValidationError(f"{key} is required.")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise errors.ValidationError(f"{key} must be a number.")
    if math.isnan(value) or math.isinf(value):
        raise errors.ValidationError(f"{key} must be a number.")
    if integer:
        if not value.is_integer():
            raise errors.ValidationError(f"{key} must be an integer.")
        value = int(value)
    if value < low or (high is not None and value > high):
        bounds = f"{low:g}-{high:g}" if high is not None else f">= {low:g}"
        raise errors.ValidationError(f"{key} must be {bounds}.")
    return value


def _text(data: Mapping[str, Any], key: str, max_len: int) -> str:
    raw = data.get(key)
    if not isinstance(raw, str) or not raw.strip():
        return "unknown"
    return raw.strip()[:max_len]


def normalize_observation(observation: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate numeric fields and clean up the free-text ones.

    Raises errors.ValidationError on negative / out-of-range numbers. Text fields
    never fail: blanks and non-strings become "unknown", long values are cut.
    """
    data = {_ALIASES.get(k, k): v for k, v in observation.items()}
    fields = {
        "download_speed": _number(data, "download_speed", integer=False),
        "upload_speed": _number(data, "upload_speed", integer=False),
        "ping": _number(data, "ping", integer=True),
        "jitter": _number(data, "jitter", integer=True),
        "packet_loss": _number(data, "packet_loss", integer=False, high=100),
        "network_score": _number(data, "network_score", integer=True, high=100),
    }
    for key, max_len in TEXT_FIELDS.items():
        fields[key] = _text(data, key, max_len)
    return fields


class HistoryStore:
    def __init__(self, storage: StorageBackend, max_records: int = DEFAULT_MAX_RECORDS):
        if max_records < 1:
            raise ValueError("max_records must be at least 1")
        self.storage = storage
        self.max_records = max_records
        self.locks = OwnerLocks()

    async def append(self, owner_id: str, observation: Mapping[str, Any]) -> HistoryRecord:
        """Store one observation for ``owner_id`` and enforce the retention cap"""
        fields = normalize_observation(observation)
        record = HistoryRecord(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            timestamp=dt.datetime.now(dt.timezone.utc),
            **fields,
        )
        async with self.locks.hold(owner_id):
            stored = await self.storage.add_record(record)
            evicted = await self.storage.trim_records(owner_id, self.max_records)
        if evicted:
            logger.debug("[history] evicted %d old record(s) for %s", evicted, owner_id)
        return stored

    async def list(self, owner_id: str, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> HistoryPage:
        """
        One page of the owner's history, newest first.
        ``page_size`` is clamped to [1, 100] and ``page`` to >= 1.
        """
        page_size = min(MAX_PAGE_SIZE, max(1, int(page_size or DEFAULT_PAGE_SIZE)))
        page = max(1, int(page or 1))
        async with self.locks.hold(owner_id):
            total = await self.storage.count_records(owner_id)
            items = await self.storage.list_records(owner_id, (page - 1) * page_size, page_size)
        return HistoryPage(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=max(1, math.ceil(total / page_size)),
        )

    async def get_by_id(self, record_id: str) -> Optional[HistoryRecord]:
        """
        Global lookup regardless of owner.
        Callers must check ``record.owner_id`` themselves (see AccessGate.authorize_record).
        """
        return await self.storage.get_record(record_id)

    async def clear(self, owner_id: str) -> int:
        async with self.locks.hold(owner_id):
            return await self.storage.delete_records(owner_id)

    async def snapshot(self, owner_id: str) -> List[HistoryRecord]:
        """The owner's whole collection as one consistent read"""
        async with self.locks.hold(owner_id):
            return await self.storage.scan_records(owner_id)

    async def total(self) -> int:
        return await self.storage.count_records()
