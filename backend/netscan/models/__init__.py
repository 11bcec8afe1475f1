# netscan/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models (used only by the "tortoise" storage backend).

Models exported:
- User: Account, credentials and current session marker
- TestResult: One speed-test observation (belongs to User)
"""
from .user import User
from .test_result import TestResult
