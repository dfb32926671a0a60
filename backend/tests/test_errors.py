"""
Tests for failure classification. Classification is by exception type and
driver error code, never by message text.
"""

import pytest
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from gusto.core.errors import (
    DependencyError,
    FailureKind,
    NotificationError,
    StorageError,
    classify_failure,
)


class _PgError(Exception):
    def __init__(self, sqlstate):
        super().__init__("driver error")
        self.sqlstate = sqlstate


class _SqliteError(Exception):
    def __init__(self, name):
        super().__init__("driver error")
        self.sqlite_errorname = name


@pytest.mark.parametrize(
    "exc, kind",
    [
        (IntegrityError("INSERT", {}, _PgError("23505")), FailureKind.DUPLICATE_KEY),
        (IntegrityError("INSERT", {}, _PgError("23503")), FailureKind.MISSING_REFERENCE),
        (IntegrityError("INSERT", {}, _SqliteError("SQLITE_CONSTRAINT_UNIQUE")), FailureKind.DUPLICATE_KEY),
        (IntegrityError("INSERT", {}, _SqliteError("SQLITE_CONSTRAINT_FOREIGNKEY")), FailureKind.MISSING_REFERENCE),
        (IntegrityError("INSERT", {}, _PgError("23514")), FailureKind.UNKNOWN),
        (OperationalError("SELECT 1", {}, Exception("refused")), FailureKind.CONNECTIVITY),
        (InterfaceError("SELECT 1", {}, Exception("closed")), FailureKind.CONNECTIVITY),
        (ConnectionRefusedError(), FailureKind.CONNECTIVITY),
        (TimeoutError(), FailureKind.TIMEOUT),
        (PoolTimeoutError("pool exhausted"), FailureKind.TIMEOUT),
        (StorageError("s3"), FailureKind.UPLOAD),
        (NotificationError("smtp"), FailureKind.EMAIL),
        (ValueError("unique constraint"), FailureKind.UNKNOWN),
    ],
)
def test_classify_failure(exc, kind):
    assert classify_failure(exc) == kind


def test_dependency_error_from_exception():
    error = DependencyError.from_exception(StorageError("bucket gone"))
    assert error.status_code == 500
    assert error.message == "Registration failed."
    assert error.kind == FailureKind.UPLOAD
    assert error.reason == "bucket gone"
    assert error.kind.user_message


def test_dependency_error_reason_without_message():
    assert DependencyError(FailureKind.TIMEOUT, TimeoutError()).reason == "TimeoutError"
    assert DependencyError(FailureKind.UNKNOWN).reason == "unknown"
