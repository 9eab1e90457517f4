import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict

from tailor.core.errors import RateLimitExceededError

logger = logging.getLogger("uvicorn.error")


@dataclass
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: float


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window call limiter kept in memory; resets on restart."""

    def __init__(self, max_calls: int, window_s: float, *, clock: Callable[[], float] = time.monotonic):
        self.max_calls = max_calls
        self.window_s = window_s
        self._clock = clock
        self._windows: Dict[str, _Window] = {}

    @property
    def enabled(self) -> bool:
        return self.max_calls > 0

    def check(self, key: str = "api-calls") -> RateLimitDecision:
        now = self._clock()
        if not self.enabled:
            return RateLimitDecision(True, self.max_calls, now)
        window = self._windows.get(key)
        if window is None or now > window.reset_at:
            self._windows[key] = _Window(count=1, reset_at=now + self.window_s)
            return RateLimitDecision(True, self.max_calls - 1, now + self.window_s)
        if window.count >= self.max_calls:
            return RateLimitDecision(False, 0, window.reset_at)
        window.count += 1
        return RateLimitDecision(True, self.max_calls - window.count, window.reset_at)

    def acquire(self, key: str = "api-calls") -> None:
        decision = self.check(key)
        if not decision.allowed:
            retry_after = max(decision.reset_at - self._clock(), 0.0)
            logger.warning("ratelimit:rejected key=%s retry_after_s=%.1f", key, retry_after)
            raise RateLimitExceededError(
                f"local rate limit of {self.max_calls} calls per {self.window_s:g}s reached",
                retry_after_s=retry_after,
            )
