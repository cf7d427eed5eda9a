"""Retry with exponential backoff for storage I/O.

Errors are sorted into kinds. Connection trouble, throttling and server-side
failures are retried; access, not-found and other client errors are not, and
neither is anything unrecognised.
"""

import asyncio
import errno
import logging
import socket
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from docflow.domain.exceptions import (
    ConnectionFailure,
    ObjectNotFound,
    OperationTimeout,
    RetriesExhausted,
    StorageAccessDenied,
    StorageConnectionError,
    StorageThrottled,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

THROTTLE_CODES = frozenset(
    {"Throttling", "ThrottlingException", "TooManyRequests", "SlowDown", "RequestLimitExceeded"}
)
SERVER_CODES = frozenset({"ServiceUnavailable", "RequestTimeout", "InternalError"})
NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "NotFound", "ENOENT"})
ACCESS_DENIED_CODES = frozenset({"AccessDenied", "Forbidden", "EACCES", "EPERM"})
CONNECTION_CODES = frozenset(
    {"ECONNREFUSED", "ECONNRESET", "ETIMEDOUT", "ENOTFOUND", "EAI_AGAIN", "EPIPE"}
)
CONNECTION_ERRNOS = frozenset(
    {
        errno.ECONNREFUSED,
        errno.ECONNRESET,
        errno.ETIMEDOUT,
        errno.EPIPE,
        errno.EHOSTUNREACH,
        errno.ENETUNREACH,
    }
)

RETRYABLE_KINDS = frozenset({"connection_failure", "throttled", "server_error"})


def classify_error(exc: BaseException) -> str:
    """Return the error kind used to decide whether to retry."""
    if not isinstance(exc, Exception):
        return "unknown"
    code = getattr(exc, "code", None)
    status = getattr(exc, "status_code", None)
    if isinstance(exc, ObjectNotFound) or code in NOT_FOUND_CODES:
        return "not_found"
    if isinstance(exc, StorageAccessDenied) or code in ACCESS_DENIED_CODES:
        return "access_denied"
    if isinstance(exc, StorageThrottled) or code in THROTTLE_CODES:
        return "throttled"
    if isinstance(exc, StorageConnectionError | ConnectionFailure | ConnectionError | socket.gaierror):
        return "connection_failure"
    if code in CONNECTION_CODES:
        return "connection_failure"
    if isinstance(exc, TimeoutError):
        return "connection_failure"
    if isinstance(exc, OSError) and exc.errno in CONNECTION_ERRNOS:
        return "connection_failure"
    if code in SERVER_CODES:
        return "server_error"
    if isinstance(status, int):
        if status == 429:
            return "throttled"
        if status >= 500:
            return "server_error"
        if 400 <= status < 500:
            return "client_error"
    return "unknown"


def is_retryable(exc: BaseException) -> bool:
    return classify_error(exc) in RETRYABLE_KINDS


@dataclass(frozen=True)
class RetryPolicy:
    """Attempts and backoff: waits base_delay * 2^(attempt-1) between attempts."""

    max_attempts: int = 3
    base_delay: float = 1.0

    def delay_after(self, attempt: int) -> float:
        return self.base_delay * 2 ** (attempt - 1)


def _log_before_sleep(operation: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    def log(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        logger.warning(
            "%s failed (attempt %d/%d, %s): %s; retrying in %.2fs",
            operation,
            state.attempt_number,
            max_attempts,
            classify_error(exc) if exc else "unknown",
            exc,
            delay,
        )

    return log


async def run_with_retry(
    operation: str,
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    timeout: float | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    monotonic: Callable[[], float] = time.monotonic,
) -> T:
    """Run ``fn`` until it succeeds, fails permanently or attempts run out.

    Raises RetriesExhausted when every attempt failed with a retryable error,
    OperationTimeout when ``timeout`` seconds pass first, and the original
    exception for anything not retryable.
    """
    started = monotonic()
    attempts = 0
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.base_delay, min=0),
        retry=retry_if_exception(is_retryable),
        sleep=sleep,
        before_sleep=_log_before_sleep(operation, policy.max_attempts),
    )

    async def attempt_loop() -> T:
        nonlocal attempts
        async for attempt in retrying:
            with attempt:
                attempts = attempt.retry_state.attempt_number
                result = await fn()
        return result

    deadline = asyncio.timeout(timeout)
    try:
        async with deadline:
            return await attempt_loop()
    except RetryError as e:
        last_error = e.last_attempt.exception()
        elapsed = monotonic() - started
        logger.error(
            "%s failed after %d attempts in %.2fs: %s", operation, attempts, elapsed, last_error
        )
        raise RetriesExhausted(operation, attempts, elapsed, last_error) from last_error
    except TimeoutError as e:
        if not deadline.expired():
            raise
        elapsed = monotonic() - started
        logger.error("%s timed out after %.2fs (%d attempts)", operation, elapsed, attempts)
        raise OperationTimeout(operation, timeout or 0.0, attempts, elapsed) from e
