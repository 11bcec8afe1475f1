"""
Credential Store

Owns identity records and everything that touches a password hash. Hashing is
an explicit step here (never an ORM save hook) and runs in a worker thread so
the event loop keeps serving other requests while Argon2 burns CPU.
"""
import asyncio
import datetime as dt
import logging
import uuid
from typing import Optional

from netscan.core import errors
from netscan.core.security import hash_password, verify_password
from netscan.storage.base import Identity, IdentityRecord, StorageBackend

logger = logging.getLogger("uvicorn.error")

MAX_NAME_LENGTH = 100  # matches users.name column


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def clean_name(name: str) -> str:
    """Trimmed display name; raises ValidationError when blank or too long"""
    value = (name or "").strip()
    if not value:
        raise errors.ValidationError("Name is required.")
    if len(value) > MAX_NAME_LENGTH:
        raise errors.ValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters.")
    return value


class CredentialStore:
    """Identity persistence plus password hashing / verification"""

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    async def create_identity(self, name: str, email: str, password: str) -> Identity:
        """
        Register a new account.

        Raises:
            errors.ValidationError: blank name or email, name over MAX_NAME_LENGTH
            errors.Conflict: email (after trim + lowercase) already registered
        """
        display_name = clean_name(name)
        key = normalize_email(email)
        if not key:
            raise errors.ValidationError("Email is required.")
        # Fail fast before paying for the hash; the storage layer re-checks on insert
        if await self.storage.get_identity_by_email(key):
            raise errors.Conflict("An account with this email already exists.", code="EMAIL_EXISTS")

        password_hash = await asyncio.to_thread(hash_password, password)
        now = utc_now()
        record = await self.storage.add_identity(IdentityRecord(
            id=str(uuid.uuid4()),
            name=display_name,
            email=key,
            password_hash=password_hash,
            created_at=now,
            last_login_at=now,
        ))
        return record.sanitized()

    async def find_by_email(self, email: str) -> Optional[IdentityRecord]:
        """Raw lookup (includes the hash); for login only"""
        return await self.storage.get_identity_by_email(normalize_email(email))

    async def find_by_id(self, identity_id: str) -> Optional[Identity]:
        record = await self.storage.get_identity(identity_id)
        return record.sanitized() if record else None

    async def verify_password(self, plain: str, password_hash: str) -> bool:
        return await asyncio.to_thread(verify_password, plain, password_hash)

    async def authenticate(self, email: str, password: str) -> IdentityRecord:
        """
        Check an email/password pair.

        Unknown email and wrong password fail identically so the response
        doesn't reveal which accounts exist.
        """
        record = await self.find_by_email(email)
        if not record or not await self.verify_password(password, record.password_hash):
            raise errors.InvalidCredentials()
        return record

    async def rename_identity(self, identity_id: str, new_name: str) -> Identity:
        record = await self.storage.update_identity(identity_id, name=clean_name(new_name))
        if not record:
            raise errors.NotFound("User not found.", code="USER_NOT_FOUND")
        return record.sanitized()

    async def touch_login(self, identity_id: str) -> Optional[Identity]:
        record = await self.storage.update_identity(identity_id, last_login_at=utc_now())
        return record.sanitized() if record else None

    async def change_password(self, identity_id: str, current: str, new: str) -> None:
        """
        Replace the password after re-checking the current one.

        Raises:
            errors.NotFound: identity vanished
            errors.InvalidCredentials: current password does not match
        """
        record = await self.storage.get_identity(identity_id)
        if not record:
            raise errors.NotFound("User not found.", code="USER_NOT_FOUND")
        if not await self.verify_password(current, record.password_hash):
            raise errors.InvalidCredentials("Current password is incorrect.")
        new_hash = await asyncio.to_thread(hash_password, new)
        await self.storage.update_identity(identity_id, password_hash=new_hash)
        logger.info("[auth] password changed for %s", record.email)

    async def count(self) -> int:
        return await self.storage.count_identities()
