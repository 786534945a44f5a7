"""Tests for per-provider rate limiting (driven by a fake clock)"""

import pytest

from ragas_panel.domain.errors import RateLimitExceededError
from ragas_panel.execution.rate_limit import (
    RateLimiterRegistry,
    RateLimitSettings,
    RateLimitStrategy,
    TokenBucket,
)
from ragas_panel.harness_config import RateLimitConfig


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def _provider_of(model_id):
    return model_id.split("/")[0]


class TestTokenBucket:
    """TokenBucket with a fake clock"""

    def test_burst_up_to_capacity(self):
        clock = FakeClock()
        bucket = TokenBucket(2, clock=clock)
        assert bucket.reserve() == 0.0
        assert bucket.reserve() == 0.0
        assert bucket.reserve() == pytest.approx(0.5)

    def test_refills_over_time(self):
        clock = FakeClock()
        bucket = TokenBucket(1, clock=clock)
        bucket.reserve()
        clock.now += 1.0
        assert bucket.reserve() == 0.0

    def test_invalid_rate(self):
        with pytest.raises(ValueError):
            TokenBucket(0)


class TestRateLimitSettings:
    """RateLimitSettings validation"""

    def test_validation(self):
        with pytest.raises(ValueError, match="requests_per_second"):
            RateLimitSettings(0)
        with pytest.raises(ValueError, match="timeout_seconds"):
            RateLimitSettings(1, timeout_seconds=-1)


class TestRateLimiterRegistry:
    """Per-provider limiter registry"""

    def _registry(self, strategy, timeout=0.0):
        clock = FakeClock()
        registry = RateLimiterRegistry(
            {"claude": RateLimitSettings(1, strategy, timeout)},
            _provider_of,
            clock=clock,
            sleep=clock.sleep,
        )
        return registry, clock

    def test_unlimited_provider(self):
        registry, clock = self._registry(RateLimitStrategy.REJECT)
        for _ in range(10):
            registry.acquire("vertex_ai/gemini")
        assert clock.sleeps == []

    def test_wait_strategy_sleeps(self):
        registry, clock = self._registry(RateLimitStrategy.WAIT)
        registry.acquire("claude/haiku")
        registry.acquire("claude/haiku")
        assert clock.sleeps == [pytest.approx(1.0)]

    def test_reject_strategy_raises(self):
        registry, clock = self._registry(RateLimitStrategy.REJECT)
        registry.acquire("claude/haiku")
        with pytest.raises(RateLimitExceededError, match="claude/haiku"):
            registry.acquire("claude/haiku")
        assert clock.sleeps == []

    def test_wait_past_timeout_raises(self):
        registry, _ = self._registry(RateLimitStrategy.WAIT, timeout=0.5)
        registry.acquire("claude/haiku")
        with pytest.raises(RateLimitExceededError) as exc_info:
            registry.acquire("claude/haiku")
        assert exc_info.value.provider == "claude"

    def test_from_config(self):
        config = RateLimitConfig(strategy="REJECT", requests_per_second={"claude": 1.0})
        registry = RateLimiterRegistry.from_config(config, _provider_of)
        registry.acquire("claude/haiku")
        with pytest.raises(RateLimitExceededError):
            registry.acquire("claude/haiku")

    def test_from_config_unknown_strategy(self):
        with pytest.raises(ValueError):
            RateLimiterRegistry.from_config(RateLimitConfig(strategy="drop"), _provider_of)
