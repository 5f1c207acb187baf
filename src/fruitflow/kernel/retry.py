"""
Backoff policies for the two things FruitFlow waits on

The document store retries SQLite lock contention a few times before the
error surfaces as DataSourceUnavailable. The distance lookup retries
connection drops and timeouts from the maps API. Both share one tenacity
policy builder and differ only in what they retry and how long they wait.
"""

import sqlite3
from collections.abc import Callable
from typing import Any, TypeVar

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fruitflow.kernel.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _log_before_sleep(message: str) -> Callable[[RetryCallState], None]:
    def before_sleep(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        logger.warning(
            message,
            target=getattr(state.fn, "__qualname__", None),
            attempt=state.attempt_number,
            error=str(error) if error else None,
        )

    return before_sleep


def _backoff(
    exceptions: tuple[type[BaseException], ...],
    attempts: int,
    min_wait_ms: int,
    max_wait_ms: int,
    message: str,
) -> Any:
    return retry(
        retry=retry_if_exception_type(exceptions),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(min=min_wait_ms / 1000, max=max_wait_ms / 1000),
        before_sleep=_log_before_sleep(message),
        reraise=True,
    )


def retry_on_sqlite_lock(
    max_attempts: int = 3,
    min_wait_ms: int = 50,
    max_wait_ms: int = 500,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry a store access on sqlite3.OperationalError

    The last error is re-raised unchanged once attempts run out; the store
    turns it into DataSourceUnavailable.

    Example:
        @retry_on_sqlite_lock()
        def _upsert(self, conn, ...):
            conn.execute(...)
    """
    return _backoff(
        (sqlite3.OperationalError,),
        max_attempts,
        min_wait_ms,
        max_wait_ms,
        "Document store busy, retrying",
    )


def retry_on_transient_error(
    max_attempts: int = 3,
    min_wait_ms: int = 100,
    max_wait_ms: int = 1000,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry an outbound call on the given exception types"""
    return _backoff(
        exceptions,
        max_attempts,
        min_wait_ms,
        max_wait_ms,
        "Transient upstream error, retrying",
    )
