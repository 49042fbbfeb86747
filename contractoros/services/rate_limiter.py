"""In-process fixed-window rate limiting.

Suitable for a single API process; counters live in a bounded in-memory
TTL cache and reset on restart.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from cachetools import TTLCache
from starlette.requests import Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    window_seconds: float
    max_requests: int


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset_time: datetime
    current: int

    @property
    def retry_after(self) -> int:
        """Whole seconds until the window resets, never less than 1."""
        delta = (self.reset_time - datetime.now(timezone.utc)).total_seconds()
        return max(1, int(delta + 0.999))


RATE_LIMIT_PRESETS: dict[str, RateLimitConfig] = {
    "auth": RateLimitConfig(window_seconds=15 * 60, max_requests=5),
    "api": RateLimitConfig(window_seconds=60, max_requests=100),
    "upload": RateLimitConfig(window_seconds=60, max_requests=10),
    "export": RateLimitConfig(window_seconds=60 * 60, max_requests=5),
    "sms": RateLimitConfig(window_seconds=60, max_requests=20),
    "assistant": RateLimitConfig(window_seconds=60, max_requests=30),
    "public": RateLimitConfig(window_seconds=60, max_requests=60),
    "password_reset": RateLimitConfig(window_seconds=60 * 60, max_requests=3),
    "magic_link": RateLimitConfig(window_seconds=15 * 60, max_requests=5),
    "webhook": RateLimitConfig(window_seconds=60, max_requests=1000),
}


class WindowRateLimiter:
    """Fixed-window counter keyed by client identifier.

    Windows live in a ``cachetools.TTLCache`` so idle clients age out and the
    number of tracked keys never exceeds ``max_keys``. Every failure inside
    the limiter is logged and the request is allowed.
    """

    def __init__(
        self,
        window_seconds: float,
        max_requests: int,
        *,
        max_keys: int = 10_000,
        clock: Callable[[], float] = time.time,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        # Each write refreshes the entry TTL, so an entry outlives its window's reset time
        self._store: TTLCache = TTLCache(maxsize=max_keys, ttl=window_seconds, timer=clock)
        self._lock = threading.Lock()

    @classmethod
    def from_preset(cls, name: str, **kwargs) -> "WindowRateLimiter":
        preset = RATE_LIMIT_PRESETS[name]
        return cls(preset.window_seconds, preset.max_requests, **kwargs)

    def __len__(self) -> int:
        with self._lock:
            return self._store.currsize

    def _result(self, success: bool, count: int, reset_ts: float) -> RateLimitResult:
        return RateLimitResult(
            success=success,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_time=datetime.fromtimestamp(reset_ts, tz=timezone.utc),
            current=count,
        )

    def _fail_open(self, key: str, exc: Exception) -> RateLimitResult:
        logger.warning("Rate limiter error for key=%s, allowing request: %s", key, exc)
        return RateLimitResult(
            success=True,
            limit=self.max_requests,
            remaining=self.max_requests,
            reset_time=datetime.now(timezone.utc),
            current=0,
        )

    def check(self, key: str) -> RateLimitResult:
        """Count one request against ``key``."""
        try:
            now = self._clock()
            with self._lock:
                entry = self._store.get(key)
                if entry is None or now >= entry[1]:
                    reset_ts = now + self.window_seconds
                    self._store[key] = (1, reset_ts)
                    return self._result(True, 1, reset_ts)

                count, reset_ts = entry[0] + 1, entry[1]
                self._store[key] = (count, reset_ts)
            return self._result(count <= self.max_requests, count, reset_ts)
        except Exception as exc:
            return self._fail_open(key, exc)

    def get_status(self, key: str) -> RateLimitResult:
        """Current window state for ``key`` without counting a request."""
        try:
            now = self._clock()
            with self._lock:
                entry = self._store.get(key)
            if entry is None or now >= entry[1]:
                return self._result(True, 0, now + self.window_seconds)
            count, reset_ts = entry
            return self._result(count < self.max_requests, count, reset_ts)
        except Exception as exc:
            return self._fail_open(key, exc)

    def decrement(self, key: str) -> None:
        with self._lock:
            entry = self._store.get(key)
            if entry and entry[0] > 0:
                self._store[key] = (entry[0] - 1, entry[1])

    def reset(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def cleanup(self) -> int:
        """Drop expired windows now instead of on the next write. Returns how many were removed."""
        with self._lock:
            return len(self._store.expire())

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


def get_client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_headers(result: RateLimitResult, *, include_retry_after: Optional[bool] = None) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(int(result.reset_time.timestamp())),
    }
    if include_retry_after if include_retry_after is not None else not result.success:
        headers["Retry-After"] = str(result.retry_after)
    return headers
