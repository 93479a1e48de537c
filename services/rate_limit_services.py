import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Protocol

from fastapi import HTTPException
from starlette import status

RATE_LIMIT_MESSAGE = "Terlalu banyak permintaan. Silakan coba lagi nanti."


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: float


class RateLimitStore(Protocol):
    """
    Window state keyed by caller. Swap InMemoryRateLimitStore for a shared
    key-value backend when more than one API process serves traffic.

    hit() must be atomic: expire or create the entry and count the request in
    one step, returning the entry after the increment.
    """

    def hit(self, key: str, now: float, window_seconds: int) -> RateLimitEntry: ...


class InMemoryRateLimitStore:
    """Process-local store; lost on restart and not shared between workers."""

    def __init__(self):
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._next_sweep = 0.0

    def hit(self, key: str, now: float, window_seconds: int) -> RateLimitEntry:
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
                self._next_sweep = now + window_seconds

            entry = self._entries.get(key)
            if entry is None or now > entry.reset_time:
                entry = RateLimitEntry(count=0, reset_time=now + window_seconds)
                self._entries[key] = entry
            entry.count += 1
            return RateLimitEntry(count=entry.count, reset_time=entry.reset_time)

    def _sweep(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if now > entry.reset_time]
        for key in expired:
            del self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._next_sweep = 0.0


class RateLimiter:
    """Fixed window: at most max_requests per window_seconds for each key."""

    def __init__(
        self,
        store: RateLimitStore,
        max_requests: int = 10,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock

    def check(self, key: str) -> RateLimitResult:
        entry = self.store.hit(f"rate:{key}", self.clock(), self.window_seconds)
        if entry.count > self.max_requests:
            return RateLimitResult(False, 0, entry.reset_time)
        return RateLimitResult(True, self.max_requests - entry.count, entry.reset_time)

    def enforce(self, key: str) -> RateLimitResult:
        result = self.check(key)
        if not result.allowed:
            retry_after = max(math.ceil(result.reset_time - self.clock()), 0)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=RATE_LIMIT_MESSAGE,
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(self.max_requests),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(math.ceil(result.reset_time)),
                },
            )
        return result
