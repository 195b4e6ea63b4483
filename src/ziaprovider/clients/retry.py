from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from ziaprovider.core.errors import APIError

logger = structlog.get_logger()

T = TypeVar("T")

# ZIA answers these when another admin session holds the configuration lock.
RETRYABLE_ERROR_CODES = frozenset({"EDIT_LOCK_NOT_AVAILABLE"})

# Never retried: the request itself is wrong or the tenant cannot accept it.
FAIL_FAST_ERROR_CODES = frozenset({"INVALID_INPUT_ARGUMENT", "TRIAL_EXPIRED", "DUPLICATE_ITEM"})


def is_fail_fast(exc: BaseException) -> bool:
    return isinstance(exc, APIError) and exc.code in FAIL_FAST_ERROR_CODES


def is_edit_lock_error(exc: BaseException) -> bool:
    return isinstance(exc, APIError) and exc.code in RETRYABLE_ERROR_CODES


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "api_call_retrying",
        attempt=state.attempt_number,
        error=str(exc) if exc else None,
    )


async def retry_on_error(
    fn: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    interval: float = 10.0,
    predicate: Callable[[BaseException], bool] = is_edit_lock_error,
) -> T:
    """Call ``fn`` up to ``attempts`` times while it fails with an error matching ``predicate``."""

    def _should_retry(exc: BaseException) -> bool:
        return predicate(exc) and not is_fail_fast(exc)

    async for attempt in AsyncRetrying(
        retry=retry_if_exception(_should_retry),
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_fixed(interval),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            return await fn()
    raise AssertionError("unreachable")  # pragma: no cover
