"""Exponential-backoff retry for async operations.

The delay before attempt ``n + 1`` is ``min(initial * multiplier**(n - 1), max)``.
Sleep is injectable so the schedule can be asserted without waiting.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from tailor.core.errors import RETRYABLE_KINDS, VisionError

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


def is_retryable_error(error: BaseException) -> bool:
    """Default classification: network, timeout, 5xx and 429 retry; the rest is terminal."""
    if isinstance(error, VisionError):
        if error.kind in RETRYABLE_KINDS:
            return True
        status = error.status
        return status is not None and (status == 429 or 500 <= status < 600)
    return isinstance(error, (TimeoutError, ConnectionError))


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay_s: float = 1.0
    max_delay_s: float = 10.0
    multiplier: float = 2.0
    retryable: Callable[[BaseException], bool] = field(default=is_retryable_error, compare=False)
    # upper bound in seconds of random delay added to each pause
    jitter: float = 0.0

    def wait(self):
        strategy = wait_exponential(
            multiplier=self.initial_delay_s, exp_base=self.multiplier, max=self.max_delay_s
        )
        if self.jitter:
            strategy = strategy + wait_random(0, self.jitter)
        return strategy


async def execute(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = RetryPolicy(),
    *,
    sleep: Sleep = asyncio.sleep,
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
    label: str = "op",
) -> T:
    if policy.max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    def before_sleep(state: RetryCallState) -> None:
        error = state.outcome.exception()
        logger.info(
            "retry:%s attempt=%s/%s failed, retrying in %.2fs reason=%r",
            label,
            state.attempt_number,
            policy.max_attempts,
            state.next_action.sleep,
            error,
        )
        if on_retry:
            on_retry(state.attempt_number, error)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=policy.wait(),
        retry=retry_if_exception(policy.retryable),
        before_sleep=before_sleep,
        sleep=sleep,
        reraise=True,
    )
    try:
        return await retrying(operation)
    except Exception as e:
        if policy.retryable(e):
            logger.warning("retry:%s exhausted attempts=%s reason=%r", label, policy.max_attempts, e)
        raise
