"""Tests for rate limiting."""

from unittest.mock import AsyncMock, MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from smileforward.infrastructure.rate_limiter import (
    InMemoryRateLimiter,
    RateLimitRule,
    RedisRateLimiter,
)
from smileforward.llm.gemini_client import ValidationResult


class ManualClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestInMemoryRateLimiter:
    async def test_blocks_after_quota(self):
        limiter = InMemoryRateLimiter(clock=ManualClock())
        rule = RateLimitRule("test", requests=2, window_seconds=60)

        first = await limiter.hit("1.2.3.4", rule)
        second = await limiter.hit("1.2.3.4", rule)
        third = await limiter.hit("1.2.3.4", rule)

        assert (first.allowed, first.remaining) == (True, 1)
        assert (second.allowed, second.remaining) == (True, 0)
        assert third.allowed is False
        assert third.retry_after == 60

    async def test_window_rolls_over(self):
        clock = ManualClock()
        limiter = InMemoryRateLimiter(clock=clock)
        rule = RateLimitRule("test", requests=1, window_seconds=60)
        await limiter.hit("1.2.3.4", rule)

        clock.now += 45
        blocked = await limiter.hit("1.2.3.4", rule)
        clock.now += 15
        allowed = await limiter.hit("1.2.3.4", rule)

        assert blocked.allowed is False
        assert blocked.retry_after == 15
        assert allowed.allowed is True

    async def test_keys_are_independent(self):
        limiter = InMemoryRateLimiter(clock=ManualClock())
        rule = RateLimitRule("test", requests=1)

        await limiter.hit("1.1.1.1", rule)

        assert (await limiter.hit("2.2.2.2", rule)).allowed is True

    async def test_reset(self):
        limiter = InMemoryRateLimiter(clock=ManualClock())
        rule = RateLimitRule("test", requests=1)
        await limiter.hit("1.1.1.1", rule)

        limiter.reset()

        assert (await limiter.hit("1.1.1.1", rule)).allowed is True


class TestRedisRateLimiter:
    async def test_counts_against_shared_window(self):
        connection = MagicMock()
        connection.hit = AsyncMock(return_value=(11, 42))

        decision = await RedisRateLimiter(connection).hit("rl:generation:1.1.1.1", RateLimitRule("generation", 10))

        assert decision.allowed is False
        assert decision.retry_after == 42

    async def test_fails_open_on_redis_error(self):
        connection = MagicMock()
        connection.hit = AsyncMock(side_effect=RedisConnectionError("redis down"))

        decision = await RedisRateLimiter(connection).hit("key", RateLimitRule("test", requests=1))

        assert decision.allowed is True
        assert decision.remaining == 1


def test_endpoint_returns_429_with_retry_after(client, mock_gemini):
    mock_gemini.validate_image.return_value = ValidationResult(True, "")
    payload = {"image_base64": "data:image/jpeg;base64,AAAA", "mode": "validate"}

    statuses = [client.post("/functions/v1/analyze-face", json=payload).status_code for _ in range(31)]

    assert statuses[:30] == [200] * 30
    assert statuses[30] == 429

    response = client.post("/functions/v1/analyze-face", json=payload)
    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) >= 1
