"""
Tortoise ORM storage backend.
Persists identities and history in a relational database (PostgreSQL in
production, SQLite locally and in tests). The connection itself is owned by
netscan.core.db; this module only issues queries.
"""
import uuid
from typing import List, Optional

from tortoise.exceptions import IntegrityError

from netscan.core import errors
from netscan.models.test_result import TestResult
from netscan.models.user import User
from .base import HistoryRecord, IdentityRecord, StorageBackend


def _as_uuid(value: str) -> Optional[uuid.UUID]:
    """Parse an id coming from a URL or token; malformed ids simply match nothing"""
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        return None


def _identity_from_row(u: User) -> IdentityRecord:
    return IdentityRecord(
        id=str(u.id),
        name=u.name,
        email=u.email,
        password_hash=u.password_hash,
        created_at=u.created_at,
        last_login_at=u.last_login_at,
        session_marker=u.session_marker,
    )


def _record_from_row(r: TestResult) -> HistoryRecord:
    return HistoryRecord(
        id=str(r.id),
        owner_id=str(r.user_id),
        download_speed=r.download_speed,
        upload_speed=r.upload_speed,
        ping=r.ping,
        jitter=r.jitter,
        packet_loss=r.packet_loss,
        network_score=r.network_score,
        network_type=r.network_type,
        isp=r.isp,
        ip=r.ip,
        location=r.location,
        timestamp=r.created_at,
        seq=r.seq,
    )


class TortoiseStorage(StorageBackend):
    """Relational implementation of the storage interface"""

    @property
    def name(self) -> str:
        return "tortoise"

    # -------- identities --------
    async def add_identity(self, record: IdentityRecord) -> IdentityRecord:
        try:
            u = await User.create(
                id=_as_uuid(record.id),
                name=record.name,
                email=record.email,
                password_hash=record.password_hash,
                session_marker=record.session_marker,
                created_at=record.created_at,
                last_login_at=record.last_login_at,
            )
        except IntegrityError:
            # Unique index on email lost a race with a concurrent registration
            raise errors.Conflict("An account with this email already exists.", code="EMAIL_EXISTS")
        return _identity_from_row(u)

    async def get_identity(self, identity_id: str) -> Optional[IdentityRecord]:
        uid = _as_uuid(identity_id)
        if uid is None:
            return None
        u = await User.get_or_none(id=uid)
        return _identity_from_row(u) if u else None

    async def get_identity_by_email(self, email: str) -> Optional[IdentityRecord]:
        u = await User.get_or_none(email=email)
        return _identity_from_row(u) if u else None

    async def update_identity(self, identity_id: str, **changes) -> Optional[IdentityRecord]:
        uid = _as_uuid(identity_id)
        if uid is None:
            return None
        # Single UPDATE statement: a concurrent reader sees the old or the new marker
        updated = await User.filter(id=uid).update(**changes)
        if not updated:
            return None
        return await self.get_identity(identity_id)

    async def count_identities(self) -> int:
        return await User.all().count()

    # -------- history --------
    async def add_record(self, record: HistoryRecord) -> HistoryRecord:
        owner = _as_uuid(record.owner_id)
        last = await TestResult.filter(user_id=owner).order_by("-seq").first()
        r = await TestResult.create(
            id=_as_uuid(record.id),
            user_id=owner,
            seq=(last.seq + 1) if last else 1,
            download_speed=record.download_speed,
            upload_speed=record.upload_speed,
            ping=record.ping,
            jitter=record.jitter,
            packet_loss=record.packet_loss,
            network_score=record.network_score,
            network_type=record.network_type,
            isp=record.isp,
            ip=record.ip,
            location=record.location,
            created_at=record.timestamp,
        )
        return _record_from_row(r)

    async def get_record(self, record_id: str) -> Optional[HistoryRecord]:
        rid = _as_uuid(record_id)
        if rid is None:
            return None
        r = await TestResult.get_or_none(id=rid)
        return _record_from_row(r) if r else None

    async def count_records(self, owner_id: Optional[str] = None) -> int:
        if owner_id is None:
            return await TestResult.all().count()
        owner = _as_uuid(owner_id)
        if owner is None:
            return 0
        return await TestResult.filter(user_id=owner).count()

    async def list_records(self, owner_id: str, offset: int, limit: int) -> List[HistoryRecord]:
        owner = _as_uuid(owner_id)
        if owner is None:
            return []
        rows = await TestResult.filter(user_id=owner).order_by("-seq").offset(offset).limit(limit)
        return [_record_from_row(r) for r in rows]

    async def scan_records(self, owner_id: str) -> List[HistoryRecord]:
        owner = _as_uuid(owner_id)
        if owner is None:
            return []
        rows = await TestResult.filter(user_id=owner).order_by("-seq")
        return [_record_from_row(r) for r in rows]

    async def trim_records(self, owner_id: str, keep: int) -> int:
        owner = _as_uuid(owner_id)
        if owner is None:
            return 0
        total = await TestResult.filter(user_id=owner).count()
        if total <= keep:
            return 0
        stale_ids = await (
            TestResult.filter(user_id=owner)
            .order_by("-seq")
            .offset(keep)
            .limit(total - keep)
            .values_list("id", flat=True)
        )
        return await TestResult.filter(id__in=list(stale_ids)).delete()

    async def delete_records(self, owner_id: str) -> int:
        owner = _as_uuid(owner_id)
        if owner is None:
            return 0
        return await TestResult.filter(user_id=owner).delete()
