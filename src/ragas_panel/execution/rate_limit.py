"""
Per-provider rate limiting

A token bucket per provider, acquired before every model call.
With the WAIT strategy a call blocks until a token is free (optionally up
to a timeout); with REJECT it fails immediately. Either failure surfaces
as RateLimitExceededError, which the executor records as a per-model
failure.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Callable

from ragas_panel.domain.errors import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimitStrategy(Enum):
    WAIT = "wait"
    REJECT = "reject"


@dataclass(frozen=True)
class RateLimitSettings:
    """Limit for one provider"""
    requests_per_second: float
    strategy: RateLimitStrategy = RateLimitStrategy.WAIT
    timeout_seconds: float = 0.0  # 0 = wait without limit

    def __post_init__(self):
        if self.requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        if self.timeout_seconds < 0:
            raise ValueError("timeout_seconds must be non-negative")


class TokenBucket:
    """Token bucket refilled continuously at ``rate`` tokens per second"""

    def __init__(self, rate: float, *, clock: Callable[[], float] | None = None):
        if rate <= 0:
            raise ValueError("rate must be positive")
        self._rate = float(rate)
        self._capacity = max(1.0, self._rate)
        self._tokens = self._capacity
        self._clock = clock or time.monotonic
        self._last_refill = self._clock()
        self._lock = Lock()

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
        self._last_refill = now

    def reserve(self) -> float:
        """Take a token if available; otherwise return the seconds until one is"""
        with self._lock:
            self._refill(self._clock())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return 0.0
            return (1.0 - self._tokens) / self._rate


class RateLimiterRegistry:
    """Token buckets keyed by provider; providers without settings are unlimited"""

    def __init__(
        self,
        limits: Mapping[str, RateLimitSettings],
        provider_of: Callable[[str], str],
        *,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._limits = dict(limits)
        self._provider_of = provider_of
        self._clock = clock or time.monotonic
        self._sleep = sleep
        self._buckets = {
            provider: TokenBucket(settings.requests_per_second, clock=self._clock)
            for provider, settings in self._limits.items()
        }

    @classmethod
    def from_config(cls, config, provider_of: Callable[[str], str]) -> RateLimiterRegistry:
        """Build from a RateLimitConfig"""
        strategy = RateLimitStrategy(config.strategy.lower())
        limits = {
            provider: RateLimitSettings(rps, strategy, config.timeout_seconds)
            for provider, rps in config.requests_per_second.items()
        }
        return cls(limits, provider_of)

    def acquire(self, model_id: str) -> None:
        """
        Block (or fail) until the model's provider allows one more request

        Raises:
            RateLimitExceededError: REJECT with no token, or WAIT past the timeout
        """
        provider = self._provider_of(model_id)
        bucket = self._buckets.get(provider)
        if bucket is None:
            return
        settings = self._limits[provider]

        deadline = None
        if settings.timeout_seconds > 0:
            deadline = self._clock() + settings.timeout_seconds
        while True:
            wait = bucket.reserve()
            if wait <= 0.0:
                return
            if settings.strategy is RateLimitStrategy.REJECT:
                raise RateLimitExceededError(model_id, provider)
            if deadline is not None and self._clock() + wait > deadline:
                raise RateLimitExceededError(model_id, provider)
            logger.debug("Rate limit for %s: waiting %.3fs", provider, wait)
            self._sleep(wait)
