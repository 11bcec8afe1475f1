# netscan/models/user.py
"""
Database model for users.
Represents an account: identity, credentials and the current session marker.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many TestResults (one-to-many, via related_name="test_results")

    Security:
    - Password is stored as a hash (hashing happens in the credential store, not here)
    - Email is stored normalized (trimmed, lowercase) and must be unique
    - session_marker holds the one active login; null means logged out
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    name = fields.CharField(max_length=100)  # Display name
    email = fields.CharField(
        max_length=256,
        unique=True,
        index=True
    )  # Normalized email, unique, indexed for login lookups
    password_hash = fields.CharField(max_length=255)  # Argon2 hash, never plain text
    session_marker = fields.CharField(max_length=64, null=True)  # Current session; overwritten on each login
    created_at = fields.DatetimeField()  # Registration time (set by the credential store)
    last_login_at = fields.DatetimeField()  # Last successful login

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"  # Database table name
