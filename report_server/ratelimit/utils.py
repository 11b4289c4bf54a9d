"""
Fixed-window, per-address rate limiting for report submissions.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request

from report_server.errors import RateLimitExceeded

RATE_LIMIT_MESSAGE = "Too many reports from this IP, please try again later."


@dataclass
class FixedWindowRateLimiter:
    """Allows max_requests hits per key in each window of window_seconds."""

    max_requests: int
    window_seconds: float
    clock: Callable[[], float] = time.monotonic
    _hits: Dict[str, Tuple[float, int]] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def hit(self, key: str) -> bool:
        """Count one attempt for key. Returns False once the window's budget is spent."""
        now = self.clock()
        with self._lock:
            window_start, count = self._hits.get(key, (now, 0))
            if now - window_start >= self.window_seconds:
                window_start, count = now, 0
            count += 1
            self._hits[key] = (window_start, count)
            self._prune(now)
            return count <= self.max_requests

    def retry_after(self, key: str) -> int:
        with self._lock:
            window_start, _ = self._hits.get(key, (self.clock(), 0))
        return max(0, int(window_start + self.window_seconds - self.clock()))

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()

    def _prune(self, now: float) -> None:
        expired = [k for k, (start, _) in self._hits.items() if now - start >= self.window_seconds]
        for k in expired:
            del self._hits[k]


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def enforce_report_rate_limit(request: Request) -> None:
    """Dependency for POST /report. Every attempt counts, valid or not."""
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    key = client_address(request)
    if not limiter.hit(key):
        error = RateLimitExceeded(RATE_LIMIT_MESSAGE)
        raise HTTPException(
            status_code=error.status_code,
            detail=error.message,
            headers={"Retry-After": str(limiter.retry_after(key))},
        )
