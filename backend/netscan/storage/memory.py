"""
In-process storage backend.
Keeps identities and per-owner history lists in plain dictionaries; suitable
for development, tests and single-process deployments (data is lost on restart).
"""
import itertools
from dataclasses import replace
from typing import Dict, List, Optional

from netscan.core import errors
from .base import HistoryRecord, IdentityRecord, StorageBackend


class MemoryStorage(StorageBackend):
    """
    Dictionary-backed implementation of the storage interface.

    Data structure:
    - _users: identity id -> IdentityRecord
    - _email_index: normalized email -> identity id
    - _history: owner id -> list of HistoryRecord, newest at index 0
    - _records: record id -> HistoryRecord (global lookup)
    """

    def __init__(self):
        self._users: Dict[str, IdentityRecord] = {}
        self._email_index: Dict[str, str] = {}
        self._history: Dict[str, List[HistoryRecord]] = {}
        self._records: Dict[str, HistoryRecord] = {}
        self._seq = itertools.count(1)

    @property
    def name(self) -> str:
        return "memory"

    # Copies go out so callers can't mutate stored rows behind our back
    async def add_identity(self, record: IdentityRecord) -> IdentityRecord:
        if record.email in self._email_index:
            raise errors.Conflict("An account with this email already exists.", code="EMAIL_EXISTS")
        self._users[record.id] = replace(record)
        self._email_index[record.email] = record.id
        return replace(record)

    async def get_identity(self, identity_id: str) -> Optional[IdentityRecord]:
        user = self._users.get(identity_id)
        return replace(user) if user else None

    async def get_identity_by_email(self, email: str) -> Optional[IdentityRecord]:
        identity_id = self._email_index.get(email)
        return await self.get_identity(identity_id) if identity_id else None

    async def update_identity(self, identity_id: str, **changes) -> Optional[IdentityRecord]:
        user = self._users.get(identity_id)
        if not user:
            return None
        # Swap the whole row in one assignment; readers see old or new, never a mix
        updated = replace(user, **changes)
        self._users[identity_id] = updated
        return replace(updated)

    async def count_identities(self) -> int:
        return len(self._users)

    async def add_record(self, record: HistoryRecord) -> HistoryRecord:
        stored = replace(record, seq=next(self._seq))
        self._history.setdefault(stored.owner_id, []).insert(0, stored)
        self._records[stored.id] = stored
        return replace(stored)

    async def get_record(self, record_id: str) -> Optional[HistoryRecord]:
        found = self._records.get(record_id)
        return replace(found) if found else None

    async def count_records(self, owner_id: Optional[str] = None) -> int:
        if owner_id is None:
            return len(self._records)
        return len(self._history.get(owner_id, []))

    async def list_records(self, owner_id: str, offset: int, limit: int) -> List[HistoryRecord]:
        rows = self._history.get(owner_id, [])
        return [replace(r) for r in rows[offset:offset + limit]]

    async def scan_records(self, owner_id: str) -> List[HistoryRecord]:
        return [replace(r) for r in self._history.get(owner_id, [])]

    async def trim_records(self, owner_id: str, keep: int) -> int:
        rows = self._history.get(owner_id, [])
        evicted = rows[keep:]
        if not evicted:
            return 0
        del rows[keep:]
        for r in evicted:
            self._records.pop(r.id, None)
        return len(evicted)

    async def delete_records(self, owner_id: str) -> int:
        rows = self._history.pop(owner_id, [])
        for r in rows:
            self._records.pop(r.id, None)
        return len(rows)
