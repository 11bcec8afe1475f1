# netscan/core/security.py
"""
Security primitives: password hashing and session token encoding.
Session semantics (markers, supersession) live in netscan.services.sessions;
this module only knows how to hash, verify, sign and decode.
"""
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext

from netscan.config import settings

# Password hashing context
# Argon2 with pinned cost parameters so every hash costs the same regardless
# of library defaults (t=3 passes over 64 MiB, 4 lanes)
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__time_cost=3,
    argon2__memory_cost=65536,
    argon2__parallelism=4,
)

# JWT configuration
JWT_SECRET = settings.jwt_secret
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes
JWT_ALG = "HS256"  # JWT signing algorithm (HMAC SHA-256)
REQUIRED_CLAIMS = ["sub", "sid", "iat", "exp"]


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (salt and parameters embedded)
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a stored hash.

    Uses the hash scheme's own verify routine (constant-time comparison).
    Unknown or corrupt hashes verify as False instead of raising.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def create_access_token(
    user_id: str,
    session_marker: str,
    expires_delta: dt.timedelta | None = None,
    now: dt.datetime | None = None,
) -> str:
    """
    Create a signed session token.

    Token payload:
        - sub: Subject (identity id)
        - sid: Session marker; must equal the identity's current marker to verify
        - iat: Issued at timestamp
        - exp: Expiration timestamp
    """
    now = now or dt.datetime.now(dt.timezone.utc)
    if expires_delta is None:
        expires_delta = dt.timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": user_id,
        "sid": session_marker,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def decode_access_token(token: str) -> dict:
    """
    Decode and validate a session token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid, malformed or misses a claim
    """
    return jwt.decode(
        token,
        JWT_SECRET,
        algorithms=[JWT_ALG],
        options={"require": REQUIRED_CLAIMS},
    )
