from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from math import ceil
from threading import Lock
from time import monotonic


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after_seconds: int = 0


class SlidingWindowRateLimiter:
    """In-process limiter allowing ``max_attempts`` per key within ``window_seconds``."""

    def __init__(
        self,
        *,
        max_attempts: int,
        window_seconds: int,
        now: Callable[[], float] = monotonic,
    ) -> None:
        self._max_attempts = max(1, max_attempts)
        self._window_seconds = window_seconds
        self._now = now
        self._attempts: dict[str, deque[float]] = {}
        self._lock = Lock()

    def acquire(self, key: str) -> RateLimitDecision:
        """Record an attempt for ``key`` unless the window is already full."""
        with self._lock:
            now_value = self._now()
            self._evict_idle(now_value)
            attempts = self._attempts.setdefault(key, deque())
            if len(attempts) >= self._max_attempts:
                retry_after = self._window_seconds - (now_value - attempts[0])
                return RateLimitDecision(
                    allowed=False,
                    retry_after_seconds=max(1, ceil(retry_after)),
                )
            attempts.append(now_value)
            return RateLimitDecision(allowed=True)

    @property
    def tracked_key_count(self) -> int:
        with self._lock:
            return len(self._attempts)

    def clear_all(self) -> None:
        with self._lock:
            self._attempts.clear()

    def _trim_expired(self, attempts: deque[float], now_value: float) -> None:
        while attempts and now_value - attempts[0] >= self._window_seconds:
            attempts.popleft()

    def _evict_idle(self, now_value: float) -> None:
        for key in list(self._attempts):
            attempts = self._attempts[key]
            self._trim_expired(attempts, now_value)
            if not attempts:
                del self._attempts[key]
