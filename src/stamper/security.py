"""
Request rate limiting for the stamper registry.

Limiters are injected into the HTTP layer and keyed by caller identity;
the registry operations themselves never consult them.
"""

import time
from threading import Lock
from typing import TYPE_CHECKING, Callable, Dict, Protocol

if TYPE_CHECKING:
    from .config import RegistrySettings


class RateLimiter(Protocol):
    def consume(self, key: str) -> bool:
        """Try to take one request slot for ``key``. Returns True if allowed."""
        ...


class NoRateLimiter:
    """Allows everything."""

    def consume(self, key: str) -> bool:
        return True


class FixedWindowRateLimiter:
    """At most ``max_requests`` per caller in each ``window_seconds`` window."""

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Dict] = {}
        self._lock = Lock()
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        """Drop expired windows, at most once per window. Caller holds the lock."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        expired = [k for k, w in self._windows.items() if now - w["started"] >= self.window_seconds]
        for k in expired:
            del self._windows[k]

    def _get_window(self, key: str) -> Dict:
        now = self._clock()
        self._sweep(now)
        window = self._windows.get(key)
        if window is None or now - window["started"] >= self.window_seconds:
            window = {"started": now, "count": 0}
            self._windows[key] = window
        return window

    def consume(self, key: str) -> bool:
        with self._lock:
            window = self._get_window(key)
            if window["count"] >= self.max_requests:
                return False
            window["count"] += 1
            return True

    def remaining(self, key: str) -> int:
        with self._lock:
            window = self._get_window(key)
            return max(0, self.max_requests - window["count"])

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)


class TokenBucketRateLimiter:
    """Token bucket rate limiter."""

    def __init__(
        self,
        requests_per_minute: int = 60,
        burst_size: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.requests_per_minute = requests_per_minute
        self.burst_size = burst_size
        self._clock = clock
        self._buckets: Dict[str, Dict] = {}
        self._lock = Lock()
        self._last_sweep = clock()

    def _refill_seconds(self) -> float:
        return self.burst_size / (self.requests_per_minute / 60.0)

    def _sweep(self, now: float) -> None:
        """Drop buckets that have refilled to capacity. Caller holds the lock."""
        full_after = self._refill_seconds()
        if now - self._last_sweep < full_after:
            return
        self._last_sweep = now
        full = [k for k, b in self._buckets.items() if now - b["last_update"] >= full_after]
        for k in full:
            del self._buckets[k]

    def _get_bucket(self, key: str) -> Dict:
        """Get or create a token bucket for a key. Caller holds the lock."""
        now = self._clock()
        self._sweep(now)
        if key not in self._buckets:
            self._buckets[key] = {
                "tokens": float(self.burst_size),
                "last_update": now,
            }
        bucket = self._buckets[key]

        # Refill tokens based on time elapsed
        elapsed = now - bucket["last_update"]
        refill = elapsed * (self.requests_per_minute / 60.0)
        bucket["tokens"] = min(float(self.burst_size), bucket["tokens"] + refill)
        bucket["last_update"] = now
        return bucket

    def consume(self, key: str) -> bool:
        with self._lock:
            bucket = self._get_bucket(key)
            if bucket["tokens"] >= 1.0:
                bucket["tokens"] -= 1.0
                return True
            return False

    def get_wait_time(self, key: str) -> float:
        """Get seconds to wait before next request is allowed."""
        with self._lock:
            bucket = self._get_bucket(key)
            if bucket["tokens"] >= 1.0:
                return 0.0
            tokens_needed = 1.0 - bucket["tokens"]
            return tokens_needed / (self.requests_per_minute / 60.0)

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._buckets)


def create_rate_limiter(settings: "RegistrySettings") -> RateLimiter:
    kind = settings.rate_limiter
    if kind == "none":
        return NoRateLimiter()
    if kind == "fixed":
        return FixedWindowRateLimiter(
            max_requests=settings.rate_limit,
            window_seconds=settings.rate_window,
        )
    if kind == "token":
        per_minute = settings.rate_limit * 60.0 / settings.rate_window
        return TokenBucketRateLimiter(
            requests_per_minute=max(1, int(per_minute)),
            burst_size=settings.rate_limit,
        )
    raise ValueError(f"Unknown rate limiter: {kind!r}")
