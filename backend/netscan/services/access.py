"""
Access Control Gate

Turns a request credential into the acting identity and enforces record
ownership. Read-only: it never starts, ends or rewrites a session.
"""
from typing import Optional

from netscan.core import errors
from netscan.storage.base import HistoryRecord, Identity
from .sessions import SessionAuthenticator


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """``"Bearer <token>"`` -> ``"<token>"``; anything else -> None"""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AccessGate:
    def __init__(self, sessions: SessionAuthenticator):
        self.sessions = sessions

    async def authenticate_header(self, authorization: Optional[str]) -> Identity:
        """
        Resolve an ``Authorization`` header value.

        Raises:
            errors.Unauthenticated: header missing or not a bearer credential
            (plus everything ``authenticate`` raises)
        """
        token = extract_bearer(authorization)
        if not token:
            raise errors.Unauthenticated()
        return await self.authenticate(token)

    async def authenticate(self, token: Optional[str]) -> Identity:
        """
        Resolve a bare token to the sanitized identity acting on this request.

        Raises:
            errors.Unauthenticated: missing token, expired/malformed token,
                unknown subject or logged-out session
            errors.SessionSuperseded: valid token for a session replaced by a newer login
        """
        if not token:
            raise errors.Unauthenticated()
        record = await self.sessions.resolve(token)
        return record.sanitized()

    @staticmethod
    def authorize_record(identity: Identity, record: Optional[HistoryRecord]) -> HistoryRecord:
        """
        Raises:
            errors.NotFound: no such record
            errors.Forbidden: record exists but belongs to someone else
        """
        if record is None:
            raise errors.NotFound("Test result not found.")
        if record.owner_id != identity.id:
            raise errors.Forbidden("Not authorized to access this test result.")
        return record
