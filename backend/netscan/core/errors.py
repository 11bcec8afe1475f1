# netscan/core/errors.py
"""
Error kinds raised by the core services.

The services never deal with HTTP status codes: they raise one of the classes
below and the API layer (netscan.api.v1.errors) translates the kind into a
response. Each error carries a stable machine-readable ``code`` (what clients
switch on, e.g. to show "logged in elsewhere") and a human readable message.
"""


class CoreError(Exception):
    """Base class for every error the core surfaces to callers."""

    code = "ERROR"
    default_message = "Request failed."

    def __init__(self, message: str | None = None, code: str | None = None):
        self.message = message or self.default_message
        if code:
            self.code = code
        super().__init__(self.message)

    def __repr__(self):
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class Conflict(CoreError):
    code = "CONFLICT"
    default_message = "Resource already exists."


class ValidationError(CoreError):
    code = "VALIDATION_ERROR"
    default_message = "Invalid input."


class Unauthenticated(CoreError):
    code = "AUTH_REQUIRED"
    default_message = "Not authorised. No token provided."


class TokenExpired(Unauthenticated):
    code = "AUTH_TOKEN_EXPIRED"
    default_message = "Token expired. Please log in again."


class TokenMalformed(Unauthenticated):
    code = "AUTH_INVALID_TOKEN"
    default_message = "Invalid token. Please log in again."


class InvalidCredentials(Unauthenticated):
    code = "AUTH_INVALID_CREDENTIALS"
    default_message = "Invalid email or password."


class SessionSuperseded(CoreError):
    code = "AUTH_SESSION_SUPERSEDED"
    default_message = "You have been logged in elsewhere. Please log in again."


class Forbidden(CoreError):
    code = "FORBIDDEN"
    default_message = "Access denied."


class NotFound(CoreError):
    code = "NOT_FOUND"
    default_message = "Not found."
