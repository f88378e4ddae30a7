"""Backoff executor — bounded exponential retry around backend calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from gencache.errors.exceptions import RETRYABLE_STATUSES
from gencache.types import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


def status_of(exc: BaseException) -> int | None:
    """Return the HTTP status an exception carries, if any."""
    status = getattr(exc, "http_status", None)
    if status is None:
        status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


def is_retryable(exc: BaseException) -> bool:
    """Default retry predicate: 429, 401 and 403 are retried, nothing else."""
    return status_of(exc) in RETRYABLE_STATUSES


def _log_retry(max_attempts: int) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        wait_ms = retry_state.next_action.sleep * 1000 if retry_state.next_action else 0.0
        logger.warning(
            "Upstream error (attempt %d/%d): status %s. Retrying in %.0fms",
            retry_state.attempt_number,
            max_attempts,
            status_of(exc) if exc else None,
            wait_ms,
        )

    return before_sleep


async def call_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay_ms: int = 1000,
    is_retryable: Callable[[BaseException], bool] = is_retryable,
    max_delay_ms: int | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run ``operation`` with up to ``max_retries`` retries.

    The delay starts at ``base_delay_ms`` and doubles after every retry, with
    no jitter. Failures the predicate rejects propagate on the first attempt.
    When retries run out the last exception is re-raised as-is.
    """
    if max_retries < 0:
        raise ValueError(f"max_retries must be >= 0, got {max_retries}")
    if base_delay_ms < 0:
        raise ValueError(f"base_delay_ms must be >= 0, got {base_delay_ms}")

    wait_kwargs: dict[str, float] = {"multiplier": base_delay_ms / 1000, "exp_base": 2}
    if max_delay_ms is not None:
        wait_kwargs["max"] = max_delay_ms / 1000

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(**wait_kwargs),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry(max_retries + 1),
        sleep=sleep,
        reraise=True,
    )
    async def _attempt() -> T:
        # tenacity only awaits coroutine functions; a lambda returning an
        # awaitable would otherwise be called synchronously.
        return await operation()

    return await retrying(_attempt)


async def call_with_retry_config(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Convenience wrapper taking a RetryConfig."""
    return await call_with_backoff(
        operation,
        max_retries=config.max_retries,
        base_delay_ms=config.base_delay_ms,
        max_delay_ms=config.max_delay_ms,
        sleep=sleep,
    )
