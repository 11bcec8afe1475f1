"""
Session Authenticator

Each identity has at most one active session, represented by an opaque
marker stored on the identity and embedded (as the ``sid`` claim) in every
token issued for that login. Logging in again overwrites the marker, which
silently invalidates every token minted for the previous login: no token
blacklist is needed, supersession costs one field write.

State per identity:
    NoSession --login--> Active(m) --login--> Active(m')
    Active(m) --logout--> NoSession
"""
import datetime as dt
import logging
import secrets
from dataclasses import dataclass
from typing import Optional, Tuple

import jwt  # PyJWT

from netscan.core import errors
from netscan.core.security import create_access_token, decode_access_token
from netscan.storage.base import IdentityRecord, StorageBackend

logger = logging.getLogger("uvicorn.error")


@dataclass
class TokenClaims:
    """Verified contents of a session token"""
    identity_id: str
    marker: str
    issued_at: dt.datetime
    expires_at: dt.datetime


class SessionAuthenticator:
    def __init__(self, storage: StorageBackend, expires_delta: Optional[dt.timedelta] = None):
        self.storage = storage
        self.expires_delta = expires_delta  # None -> ACCESS_TOKEN_EXPIRE_MINUTES

    async def start_session(self, identity_id: str) -> str:
        """
        Begin a new session, replacing whatever session was active.

        Returns the new marker for embedding into a token.
        """
        marker = secrets.token_hex(16)
        record = await self.storage.update_identity(identity_id, session_marker=marker)
        if not record:
            raise errors.NotFound("User not found.", code="USER_NOT_FOUND")
        return marker

    async def end_session(self, identity_id: str) -> None:
        """Logout: every token for this identity stops verifying"""
        await self.storage.update_identity(identity_id, session_marker=None)

    def issue_token(self, identity_id: str, marker: str) -> str:
        return create_access_token(identity_id, marker, expires_delta=self.expires_delta)

    def decode(self, token: str) -> TokenClaims:
        """
        Signature, expiry and structure checks only (no storage access).

        Raises:
            errors.TokenExpired: past ``exp``
            errors.TokenMalformed: bad signature, garbage, or missing claims
        """
        try:
            payload = decode_access_token(token)
        except jwt.ExpiredSignatureError:
            raise errors.TokenExpired()
        except jwt.InvalidTokenError:
            raise errors.TokenMalformed()

        subject, marker = payload.get("sub"), payload.get("sid")
        if not isinstance(subject, str) or not isinstance(marker, str) or not subject or not marker:
            raise errors.TokenMalformed()
        return TokenClaims(
            identity_id=subject,
            marker=marker,
            issued_at=dt.datetime.fromtimestamp(payload["iat"], dt.timezone.utc),
            expires_at=dt.datetime.fromtimestamp(payload["exp"], dt.timezone.utc),
        )

    async def verify_token(self, token: str) -> TokenClaims:
        """
        Full verification: structure, then the identity's current marker.

        Raises:
            errors.TokenExpired / errors.TokenMalformed: see ``decode``
            errors.Unauthenticated: subject gone, or logged out
            errors.SessionSuperseded: a later login replaced this session
        """
        claims, _ = await self._verify(token)
        return claims

    async def resolve(self, token: str) -> IdentityRecord:
        """``verify_token`` that also hands back the identity row it checked against"""
        _, record = await self._verify(token)
        return record

    async def _verify(self, token: str) -> Tuple[TokenClaims, IdentityRecord]:
        claims = self.decode(token)
        record = await self.storage.get_identity(claims.identity_id)
        self._check_marker(record, claims)
        return claims, record

    @staticmethod
    def _check_marker(record: Optional[IdentityRecord], claims: TokenClaims) -> None:
        if record is None:
            raise errors.Unauthenticated("User no longer exists.", code="AUTH_USER_NOT_FOUND")
        if record.session_marker is None:
            raise errors.Unauthenticated("Session ended. Please log in again.", code="AUTH_SESSION_ENDED")
        if not secrets.compare_digest(record.session_marker, claims.marker):
            logger.info("[auth] superseded session rejected for %s", record.email)
            raise errors.SessionSuperseded()
