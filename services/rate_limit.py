"""Process-wide fixed-window request counter keyed by client address.

One ``FixedWindowRateLimiter`` is created with the application and lives for
the whole process. A client's counter is created on its first request and
replaced once its window has passed. Expired counters of clients that never
come back are dropped by a sweep that runs from ``hit`` at most once per
``sweep_interval`` seconds, so memory stays bounded by the active clients.

Bursts straddling a window boundary can reach twice the nominal rate; that is
the accepted cost of a fixed window.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)

UNKNOWN_CLIENT = "unknown"


class RateLimitStatus(BaseModel):
    """Represents the outcome of a rate limit check."""

    allowed: bool
    limit: int = Field(ge=0)
    remaining: int = Field(ge=0)
    retry_after_seconds: int = Field(ge=0)


@dataclass
class RateCounter:
    count: int
    reset_time: float


def client_key(headers: Mapping[str, str]) -> str:
    """Identify the caller by proxy headers; header-less callers share one bucket."""
    return headers.get("cf-connecting-ip") or headers.get("x-forwarded-for") or UNKNOWN_CLIENT


class FixedWindowRateLimiter:
    def __init__(
        self,
        limit: int = 100,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 300,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._counters: Dict[str, RateCounter] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + sweep_interval

    def __len__(self) -> int:
        return len(self._counters)

    def hit(self, client: str) -> RateLimitStatus:
        """Record a request from ``client`` and report whether it may proceed."""
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep:
                self._sweep_locked(now)

            counter = self._counters.get(client)
            if counter is None or now > counter.reset_time:
                counter = RateCounter(count=1, reset_time=now + self.window_seconds)
                self._counters[client] = counter
            elif counter.count >= self.limit:
                retry_after = max(math.ceil(counter.reset_time - now), 0)
                logger.warning("rate_limit.blocked", client=client, retry_after=retry_after)
                return RateLimitStatus(
                    allowed=False,
                    limit=self.limit,
                    remaining=0,
                    retry_after_seconds=retry_after,
                )
            else:
                counter.count += 1

            return RateLimitStatus(
                allowed=True,
                limit=self.limit,
                remaining=max(self.limit - counter.count, 0),
                retry_after_seconds=0,
            )

    def sweep(self) -> int:
        """Drop every expired counter; returns how many were removed."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        expired = [key for key, counter in self._counters.items() if now > counter.reset_time]
        for key in expired:
            del self._counters[key]
        self._next_sweep = now + self.sweep_interval
        if expired:
            logger.debug("rate_limit.swept", removed=len(expired), tracked=len(self._counters))
        return len(expired)
