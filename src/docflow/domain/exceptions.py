"""Domain exceptions.

Every exception carries a stable ``kind`` (safe to show to end users and to
branch on) and a human ``summary``. The exception message holds the detailed,
internal description and is only meant for logs.
"""


class DocFlowError(Exception):
    """Base exception for docflow."""

    kind = "internal_error"
    summary = "An internal error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        operation: str | None = None,
        entity: str | None = None,
    ) -> None:
        super().__init__(message or self.summary)
        self.operation = operation
        self.entity = entity


class ValidationError(DocFlowError):
    """Validation failed for input data."""

    kind = "validation_error"
    summary = "The request is invalid"


class NotFound(DocFlowError):
    """Requested resource was not found."""

    kind = "not_found"
    summary = "The requested resource was not found"

    def __init__(self, entity: str, identifier: str | int) -> None:
        super().__init__(f"{entity} {identifier} not found", entity=entity)
        self.identifier = identifier


class AccessDenied(DocFlowError):
    """Caller is not allowed to access the resource."""

    kind = "access_denied"
    summary = "Access denied"


class UnsupportedTask(DocFlowError):
    """No handler is registered for a queue task type."""

    kind = "unsupported_task"
    summary = "The task type is not supported"


# --- Persistence ---


class PersistenceError(DocFlowError):
    """Entity store operation failed."""

    kind = "persistence_error"
    summary = "A storage backend error occurred"


class ConnectionFailure(PersistenceError):
    """Entity store backend could not be reached."""

    kind = "connection_failure"
    summary = "The database is unavailable"


class ConstraintViolation(PersistenceError):
    """Uniqueness or referential constraint was violated."""

    kind = "constraint_violation"
    summary = "The record conflicts with existing data"


class DuplicateDocument(ConstraintViolation):
    """Document with same content hash already exists for the owner."""

    summary = "This document has already been uploaded"


# --- File storage ---


class StorageError(DocFlowError):
    """File storage operation failed.

    ``code`` is the provider error code (e.g. ``SlowDown``, ``ECONNRESET``) and
    ``status_code`` the HTTP-like status when the provider reports one.
    """

    kind = "storage_error"
    summary = "File storage is unavailable"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        key: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, operation=operation, entity="file")
        self.code = code
        self.status_code = status_code
        self.key = key


class ObjectNotFound(StorageError):
    """Object (or its bucket) does not exist."""

    kind = "not_found"
    summary = "The requested file was not found"

    def __init__(self, key: str, *, code: str = "NoSuchKey", operation: str | None = None) -> None:
        super().__init__(
            f"File not found: {key}",
            code=code,
            status_code=404,
            key=key,
            operation=operation,
        )


class StorageAccessDenied(StorageError):
    """Provider refused access to the object or bucket."""

    kind = "access_denied"
    summary = "Access to file storage was denied"


class StorageThrottled(StorageError):
    """Provider asked the caller to slow down."""

    kind = "throttled"
    summary = "File storage is busy, try again later"


class StorageConnectionError(StorageError):
    """Provider endpoint could not be reached."""

    kind = "connection_failure"
    summary = "File storage is unavailable"


class StorageNotInitialized(DocFlowError):
    """Storage facade used before initialize()."""

    kind = "storage_not_initialized"
    summary = "File storage is not configured"

    def __init__(self) -> None:
        super().__init__("Storage not initialized. Call initialize() first.")


# --- Retry outcomes ---


class RetriesExhausted(DocFlowError):
    """Every attempt of a retried operation failed with a retryable error."""

    kind = "retries_exhausted"
    summary = "The operation failed after several attempts"

    def __init__(
        self,
        operation: str,
        attempts: int,
        elapsed: float,
        last_error: BaseException,
    ) -> None:
        super().__init__(
            f"{operation} failed after {attempts} attempts in {elapsed:.2f}s: {last_error}",
            operation=operation,
        )
        self.attempts = attempts
        self.elapsed = elapsed
        self.last_error = last_error


class OperationTimeout(DocFlowError):
    """Caller deadline expired before a retried operation finished."""

    kind = "timeout"
    summary = "The operation timed out"

    def __init__(
        self,
        operation: str,
        timeout: float,
        attempts: int,
        elapsed: float,
    ) -> None:
        super().__init__(
            f"{operation} timed out after {elapsed:.2f}s "
            f"(deadline {timeout:.2f}s, {attempts} attempts started)",
            operation=operation,
        )
        self.timeout = timeout
        self.attempts = attempts
        self.elapsed = elapsed


def public_message(exc: BaseException) -> str:
    """``kind: summary`` for storing on records users can read.

    The exception's own message may name keys, hosts or buckets, so it only
    goes to the log.
    """
    if isinstance(exc, DocFlowError):
        return f"{exc.kind}: {exc.summary}"
    return f"{DocFlowError.kind}: {DocFlowError.summary}"
