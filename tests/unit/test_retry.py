"""Unit tests for storage retry classification and backoff."""

import asyncio
import errno
import socket

import pytest

from docflow.application.services.retry import (
    RetryPolicy,
    classify_error,
    is_retryable,
    run_with_retry,
)
from docflow.domain.exceptions import (
    ConnectionFailure,
    ObjectNotFound,
    OperationTimeout,
    RetriesExhausted,
    StorageAccessDenied,
    StorageConnectionError,
    StorageError,
    StorageThrottled,
)

from tests.conftest import RecordingSleep


@pytest.mark.parametrize(
    ("exc", "kind"),
    [
        (ObjectNotFound("a/b"), "not_found"),
        (StorageError("x", code="NoSuchBucket"), "not_found"),
        (StorageAccessDenied("x"), "access_denied"),
        (StorageError("x", code="EACCES"), "access_denied"),
        (StorageThrottled("x"), "throttled"),
        (StorageError("x", code="SlowDown"), "throttled"),
        (StorageError("x", status_code=429), "throttled"),
        (StorageConnectionError("x"), "connection_failure"),
        (ConnectionFailure("db down"), "connection_failure"),
        (ConnectionResetError("reset"), "connection_failure"),
        (socket.gaierror("dns"), "connection_failure"),
        (TimeoutError(), "connection_failure"),
        (OSError(errno.EHOSTUNREACH, "no route"), "connection_failure"),
        (StorageError("x", code="ECONNRESET"), "connection_failure"),
        (StorageError("x", code="InternalError"), "server_error"),
        (StorageError("x", status_code=503), "server_error"),
        (StorageError("x", status_code=400), "client_error"),
        (ValueError("nope"), "unknown"),
    ],
)
def test_classify_error(exc: BaseException, kind: str) -> None:
    assert classify_error(exc) == kind


def test_only_transient_kinds_are_retryable() -> None:
    assert is_retryable(StorageThrottled("x"))
    assert is_retryable(StorageError("x", status_code=500))
    assert not is_retryable(ObjectNotFound("k"))
    assert not is_retryable(StorageError("x", status_code=403))
    assert not is_retryable(KeyError("k"))


def test_policy_delays_double() -> None:
    policy = RetryPolicy(max_attempts=4, base_delay=0.5)
    assert [policy.delay_after(n) for n in (1, 2, 3)] == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
async def test_succeeds_after_transient_failures() -> None:
    sleep = RecordingSleep()
    calls = 0

    async def flaky() -> str:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise StorageThrottled("slow down", code="SlowDown")
        return "ok"

    result = await run_with_retry("upload", flaky, RetryPolicy(3, 1.0), sleep=sleep)
    assert result == "ok"
    assert calls == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_exhaustion_reports_attempts_and_last_error() -> None:
    sleep = RecordingSleep()
    last = StorageConnectionError("refused", code="ECONNREFUSED")

    async def down() -> None:
        raise last

    with pytest.raises(RetriesExhausted) as info:
        await run_with_retry("download", down, RetryPolicy(3, 1.0), sleep=sleep)
    assert info.value.attempts == 3
    assert info.value.last_error is last
    assert info.value.operation == "download"
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_non_retryable_error_propagates_immediately() -> None:
    sleep = RecordingSleep()
    calls = 0

    async def missing() -> None:
        nonlocal calls
        calls += 1
        raise ObjectNotFound("docs/x.pdf")

    with pytest.raises(ObjectNotFound):
        await run_with_retry("download", missing, RetryPolicy(3, 1.0), sleep=sleep)
    assert calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_deadline_interrupts_backoff() -> None:
    async def throttled() -> None:
        raise StorageThrottled("busy")

    with pytest.raises(OperationTimeout) as info:
        await run_with_retry(
            "upload", throttled, RetryPolicy(3, 1.0), timeout=0.05, sleep=asyncio.sleep
        )
    assert info.value.timeout == 0.05
    assert info.value.attempts == 1
