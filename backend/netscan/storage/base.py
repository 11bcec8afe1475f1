"""
Storage Capability Interface

One interface for identity and history persistence. Services only talk to
``StorageBackend``; swapping the in-process map for a database is a factory
choice (see storage.factory), not a parallel code path.
"""
import datetime as dt
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Identity:
    """Sanitized account view: safe to return to clients"""
    id: str
    name: str
    email: str
    created_at: dt.datetime
    last_login_at: dt.datetime


@dataclass
class IdentityRecord:
    """
    Raw account row

    Note: carries the password hash and the current session marker; only the
    credential store and the session authenticator may hold one of these.
    """
    id: str
    name: str
    email: str
    password_hash: str
    created_at: dt.datetime
    last_login_at: dt.datetime
    session_marker: Optional[str] = None

    def sanitized(self) -> Identity:
        return Identity(
            id=self.id,
            name=self.name,
            email=self.email,
            created_at=self.created_at,
            last_login_at=self.last_login_at,
        )


@dataclass
class HistoryRecord:
    """
    One speed-test observation

    ``seq`` is the per-backend insertion order; newest first means highest seq first.
    """
    id: str
    owner_id: str
    download_speed: float
    upload_speed: float
    ping: int
    jitter: int
    packet_loss: float
    network_score: int
    network_type: str = "unknown"
    isp: str = "unknown"
    ip: str = "unknown"
    location: str = "unknown"
    timestamp: dt.datetime = field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    seq: int = 0


class StorageBackend(ABC):
    """Storage Backend Abstract Base Class"""

    # -------- identities --------
    @abstractmethod
    async def add_identity(self, record: IdentityRecord) -> IdentityRecord:
        """
        Persist a new identity

        Raises:
        - errors.Conflict: the (normalized) email is already registered
        """
        pass

    @abstractmethod
    async def get_identity(self, identity_id: str) -> Optional[IdentityRecord]:
        pass

    @abstractmethod
    async def get_identity_by_email(self, email: str) -> Optional[IdentityRecord]:
        """Lookup by already-normalized email"""
        pass

    @abstractmethod
    async def update_identity(self, identity_id: str, **changes) -> Optional[IdentityRecord]:
        """
        Apply field changes in a single write and return the updated row
        (None when the identity does not exist)
        """
        pass

    @abstractmethod
    async def count_identities(self) -> int:
        pass

    # -------- history --------
    @abstractmethod
    async def add_record(self, record: HistoryRecord) -> HistoryRecord:
        """Insert at the head of the owner's collection; assigns ``seq``"""
        pass

    @abstractmethod
    async def get_record(self, record_id: str) -> Optional[HistoryRecord]:
        """Global lookup, regardless of owner"""
        pass

    @abstractmethod
    async def count_records(self, owner_id: Optional[str] = None) -> int:
        """Records of one owner, or of everyone when owner_id is None"""
        pass

    @abstractmethod
    async def list_records(self, owner_id: str, offset: int, limit: int) -> List[HistoryRecord]:
        """Slice of the owner's collection, newest first"""
        pass

    @abstractmethod
    async def scan_records(self, owner_id: str) -> List[HistoryRecord]:
        """The owner's full collection, newest first"""
        pass

    @abstractmethod
    async def trim_records(self, owner_id: str, keep: int) -> int:
        """Delete everything past the newest ``keep`` records; returns how many went"""
        pass

    @abstractmethod
    async def delete_records(self, owner_id: str) -> int:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name (e.g., "memory")"""
        pass
