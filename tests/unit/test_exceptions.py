"""Unit tests for domain exceptions."""

import pytest

from docflow.domain.exceptions import (
    AccessDenied,
    ConnectionFailure,
    ConstraintViolation,
    DocFlowError,
    DuplicateDocument,
    NotFound,
    ObjectNotFound,
    OperationTimeout,
    PersistenceError,
    RetriesExhausted,
    StorageConnectionError,
    StorageError,
    StorageNotInitialized,
    StorageThrottled,
    UnsupportedTask,
    ValidationError,
)


@pytest.mark.parametrize(
    "exc_type",
    [
        ValidationError,
        AccessDenied,
        UnsupportedTask,
        PersistenceError,
        StorageError,
        StorageNotInitialized,
    ],
)
def test_errors_inherit_docflow_error(exc_type: type) -> None:
    assert issubclass(exc_type, DocFlowError)


def test_duplicate_document_is_a_constraint_violation() -> None:
    """Callers catching ConstraintViolation also see duplicate uploads."""
    assert issubclass(DuplicateDocument, ConstraintViolation)
    assert issubclass(ConstraintViolation, PersistenceError)
    assert DuplicateDocument.kind == "constraint_violation"


def test_kinds_are_stable() -> None:
    assert ConnectionFailure.kind == "connection_failure"
    assert StorageConnectionError.kind == "connection_failure"
    assert StorageThrottled.kind == "throttled"
    assert StorageError.kind == "storage_error"
    assert ObjectNotFound.kind == "not_found"
    assert RetriesExhausted.kind == "retries_exhausted"
    assert OperationTimeout.kind == "timeout"


def test_message_defaults_to_summary() -> None:
    err = ValidationError()
    assert str(err) == ValidationError.summary


def test_not_found_carries_entity_and_identifier() -> None:
    err = NotFound("Document", 42)
    assert err.entity == "Document"
    assert err.identifier == 42
    assert "42" in str(err)
    # summary never includes internal detail
    assert "42" not in err.summary


def test_object_not_found_has_key_and_status() -> None:
    err = ObjectNotFound("users/a/file.txt", operation="download")
    assert err.key == "users/a/file.txt"
    assert err.code == "NoSuchKey"
    assert err.status_code == 404
    assert err.operation == "download"


def test_retries_exhausted_keeps_last_error() -> None:
    cause = StorageThrottled("slow down", code="SlowDown")
    err = RetriesExhausted("upload", 3, 1.5, cause)
    assert err.attempts == 3
    assert err.elapsed == 1.5
    assert err.last_error is cause
    assert err.operation == "upload"


def test_operation_timeout_context() -> None:
    err = OperationTimeout("download", 2.0, 2, 2.01)
    assert err.timeout == 2.0
    assert err.attempts == 2
    assert "download" in str(err)


def test_storage_not_initialized_message() -> None:
    with pytest.raises(DocFlowError, match="initialize"):
        raise StorageNotInitialized()
