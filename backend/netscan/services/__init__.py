"""
Services Module

Core account and history logic, independent of HTTP and of the storage backend:
- Credential Store: identities, password hashing
- Session Authenticator: single-active-session tokens
- History Store: capped, paginated per-user records
- Stats Aggregator: summary statistics
- Access Gate: token -> identity, record ownership checks
"""

from .access import AccessGate, extract_bearer
from .credentials import CredentialStore, normalize_email
from .history import HistoryPage, HistoryStore, OwnerLocks
from .sessions import SessionAuthenticator, TokenClaims
from .stats import HistoryStats, StatsAggregator, summarize

__all__ = [
    "AccessGate",
    "extract_bearer",
    "CredentialStore",
    "normalize_email",
    "HistoryPage",
    "HistoryStore",
    "OwnerLocks",
    "SessionAuthenticator",
    "TokenClaims",
    "HistoryStats",
    "StatsAggregator",
    "summarize",
]
