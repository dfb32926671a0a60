"""
Registration error taxonomy.

Every failure the registration pipeline can surface maps to exactly one of:

- ValidationError  (400) malformed or rule-violating input
- ConflictError    (409) email or mobile already registered
- DependencyError  (500) blob storage, database or timeout failure; the
  transaction has been rolled back before it is raised

StorageError and NotificationError are raised by the outbound adapters.
StorageError is wrapped into a DependencyError by the registration service;
NotificationError never reaches a client.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import exc as sa_exc


class FailureKind(Enum):
    """Coarse classification of a dependency failure, shown to the user."""

    CONNECTIVITY = "connectivity"
    DUPLICATE_KEY = "duplicate-key"
    MISSING_REFERENCE = "missing-reference"
    UPLOAD = "upload"
    TIMEOUT = "timeout"
    EMAIL = "email"
    UNKNOWN = "unknown"

    @property
    def user_message(self) -> str:
        return _USER_MESSAGES[self]


_USER_MESSAGES = {
    FailureKind.CONNECTIVITY: "Could not reach the registration database. Please try again in a few minutes.",
    FailureKind.DUPLICATE_KEY: "A conflicting registration record already exists. Please contact the organizers.",
    FailureKind.MISSING_REFERENCE: "A referenced record is missing. Please refresh the page and try again.",
    FailureKind.UPLOAD: "Payment screenshot upload failed. Please try again with a smaller image.",
    FailureKind.TIMEOUT: "The registration request timed out. Please try again.",
    FailureKind.EMAIL: "Confirmation email could not be sent.",
    FailureKind.UNKNOWN: "An unexpected error occurred. Please contact the organizers.",
}


class RegistrationError(Exception):
    """Base error with an HTTP status and a user-safe message."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RegistrationError):
    status_code = 400


class ConflictError(RegistrationError):
    status_code = 409

    def __init__(self, message: str = "Email or mobile already registered") -> None:
        super().__init__(message)


class DependencyError(RegistrationError):
    """A downstream dependency failed; keeps the underlying exception as `cause`."""

    status_code = 500

    def __init__(self, kind: FailureKind, cause: Optional[BaseException] = None) -> None:
        super().__init__("Registration failed.")
        self.kind = kind
        self.cause = cause

    @property
    def reason(self) -> str:
        if self.cause is None:
            return self.kind.value
        return str(self.cause) or type(self.cause).__name__

    @classmethod
    def from_exception(cls, exc: BaseException) -> "DependencyError":
        return cls(classify_failure(exc), cause=exc)


class StorageError(Exception):
    """Raised by blob stores when an object could not be stored."""


class NotificationError(Exception):
    """Raised by notification senders when a message could not be delivered."""


# SQLSTATE classes (PostgreSQL) and extended result names (SQLite)
_UNIQUE_VIOLATION = {"23505", "SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
_FOREIGN_KEY_VIOLATION = {"23503", "SQLITE_CONSTRAINT_FOREIGNKEY"}


def _driver_error_code(exc: sa_exc.DBAPIError) -> Optional[str]:
    candidates = [exc.orig, getattr(exc.orig, "__cause__", None)]
    for err in candidates:
        if err is None:
            continue
        for attr in ("sqlstate", "pgcode", "sqlite_errorname"):
            code = getattr(err, attr, None)
            if code:
                return str(code)
    return None


def classify_failure(exc: BaseException) -> FailureKind:
    """Map an exception to a FailureKind by type, never by message text."""
    if isinstance(exc, DependencyError):
        return exc.kind
    if isinstance(exc, StorageError):
        return FailureKind.UPLOAD
    if isinstance(exc, NotificationError):
        return FailureKind.EMAIL
    if isinstance(exc, (TimeoutError, sa_exc.TimeoutError)):
        return FailureKind.TIMEOUT
    if isinstance(exc, sa_exc.IntegrityError):
        code = _driver_error_code(exc)
        if code in _FOREIGN_KEY_VIOLATION:
            return FailureKind.MISSING_REFERENCE
        if code in _UNIQUE_VIOLATION:
            return FailureKind.DUPLICATE_KEY
        return FailureKind.UNKNOWN
    if isinstance(exc, (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.DisconnectionError)):
        return FailureKind.CONNECTIVITY
    if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
        return FailureKind.CONNECTIVITY
    if isinstance(exc, ConnectionError):
        return FailureKind.CONNECTIVITY
    return FailureKind.UNKNOWN
