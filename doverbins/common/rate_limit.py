"""
Request rate limiting for the public API.

The limiter is a policy object that the API asks before serving a request.
Counters live in a RateLimitStore; the default InMemoryRateLimitStore is
process-local and resets on restart, so it is only a soft throttle. Swap in a
shared store (Redis, database, ...) by implementing `increment`.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

import config


@dataclass(frozen=True)
class RateLimitRule:
    window_seconds: float
    max_requests: int


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float

    def retry_after(self, now: float | None = None) -> int:
        now = time.time() if now is None else now
        return max(1, int(self.reset_at - now + 0.999))


class RateLimitStore:
    """Counter storage used by RateLimiter."""

    def increment(self, key: str, window_seconds: float, now: float) -> tuple[int, float]:
        """Count a hit for key and return (hits in current window, window reset time)."""
        raise NotImplementedError


class InMemoryRateLimitStore(RateLimitStore):
    """Fixed-window counters kept in process memory."""

    CLEANUP_EVERY = 100

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[int, float]] = {}
        self._calls = 0

    def increment(self, key: str, window_seconds: float, now: float) -> tuple[int, float]:
        with self._lock:
            self._calls += 1
            if self._calls % self.CLEANUP_EVERY == 0:
                self._cleanup(now)

            count, reset_at = self._entries.get(key, (0, 0.0))
            if reset_at <= now:
                count, reset_at = 0, now + window_seconds
            count += 1
            self._entries[key] = (count, reset_at)
            return count, reset_at

    def _cleanup(self, now: float) -> None:
        expired = [key for key, (_, reset_at) in self._entries.items() if reset_at <= now]
        for key in expired:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


class RateLimiter:
    def __init__(self, rules: dict[str, RateLimitRule], store: RateLimitStore | None = None):
        self.rules = rules
        self.store = store or InMemoryRateLimitStore()

    def check(self, scope: str, identifier: str, now: float | None = None) -> RateLimitResult:
        rule = self.rules.get(scope)
        now = time.time() if now is None else now
        if rule is None:
            return RateLimitResult(allowed=True, remaining=-1, reset_at=now)

        count, reset_at = self.store.increment(f"{scope}:{identifier}", rule.window_seconds, now)
        if count > rule.max_requests:
            return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at)
        return RateLimitResult(
            allowed=True, remaining=rule.max_requests - count, reset_at=reset_at
        )


class NoopRateLimiter(RateLimiter):
    """Allows everything. Useful for tests and trusted deployments."""

    def __init__(self) -> None:
        super().__init__(rules={})


def rules_from_config() -> dict[str, RateLimitRule]:
    return {
        scope: RateLimitRule(
            window_seconds=float(values["window_seconds"]),
            max_requests=int(values["max_requests"]),
        )
        for scope, values in config.RATE_LIMITS.items()
    }


def get_client_ip(headers, remote_addr: str | None = None) -> str:
    """Best-effort client IP behind reverse proxies."""
    forwarded = headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return remote_addr or "unknown"
