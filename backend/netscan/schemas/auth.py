"""
Pydantic schemas for authentication endpoints.
Defines request models for registration, login and profile changes.
"""
import re
from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


def check_password_strength(value: str) -> str:
    """At least 8 characters including a letter and a digit"""
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters.")
    if not re.search(r"[A-Za-z]", value):
        raise ValueError("Password must contain a letter.")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain a number.")
    return value


class RegisterIn(BaseModel):
    """
    Request model for account registration.
    Email is normalized (trimmed, lowercase) before it reaches the credential store.
    """
    name: str = Field(min_length=2, max_length=100)  # Display name (trimmed)
    email: str  # Login email (unique, case-insensitive)
    password: str  # Plain text password, hashed server-side

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email.")
        return v

    @field_validator("password")
    @classmethod
    def _check_password(cls, v: str) -> str:
        return check_password_strength(v)


class LoginIn(BaseModel):
    """Request model for login; a successful login replaces any previous session"""
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email.")
        return v


class ProfileUpdateIn(BaseModel):
    """Request model for renaming the current user; same limits as registration"""
    name: str = Field(min_length=2, max_length=100)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class ChangePasswordIn(BaseModel):
    """Request model for changing the current user's password"""
    currentPassword: str
    newPassword: str

    @field_validator("newPassword")
    @classmethod
    def _check_password(cls, v: str) -> str:
        return check_password_strength(v)
