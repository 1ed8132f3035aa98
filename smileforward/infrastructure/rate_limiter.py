"""Per-client request limits for the public widget and auth endpoints.

Counters use fixed windows keyed by client IP. With Redis connected they are
shared by every instance; otherwise each process counts on its own.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, NamedTuple

from fastapi import HTTPException, Request, status
from redis.exceptions import RedisError

from smileforward.core.request_context import client_ip
from smileforward.infrastructure.redis import RedisConnection, redis_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    """Allowed requests per window for one group of endpoints."""

    name: str
    requests: int
    window_seconds: int = 60


class RateLimitDecision(NamedTuple):
    allowed: bool
    remaining: int
    retry_after: int


RULES = {
    rule.name: rule
    for rule in (
        # Image generation and Veo submissions spend model budget
        RateLimitRule("generation", requests=10),
        RateLimitRule("analysis", requests=30),
        # One check every few seconds per open poller
        RateLimitRule("polling", requests=60),
        RateLimitRule("leads", requests=20),
        RateLimitRule("auth", requests=10),
    )
}


class InMemoryRateLimiter:
    """Fixed-window counters held in process memory."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}

    async def hit(self, key: str, rule: RateLimitRule) -> RateLimitDecision:
        now = self._clock()
        started, count = self._windows.get(key, (now, 0))
        if now - started >= rule.window_seconds:
            started, count = now, 0

        retry_after = max(1, math.ceil(started + rule.window_seconds - now))
        if count >= rule.requests:
            return RateLimitDecision(False, 0, retry_after)

        self._windows[key] = (started, count + 1)
        return RateLimitDecision(True, rule.requests - count - 1, retry_after)

    def reset(self) -> None:
        self._windows.clear()


class RedisRateLimiter:
    """Fixed-window counters shared through Redis. Allows the request if Redis fails."""

    def __init__(self, connection: RedisConnection) -> None:
        self.connection = connection

    async def hit(self, key: str, rule: RateLimitRule) -> RateLimitDecision:
        try:
            count, ttl = await self.connection.hit(key, rule.window_seconds)
        except (RedisError, OSError) as e:
            logger.warning(f"Redis rate limit check failed, allowing request: {e}")
            return RateLimitDecision(True, rule.requests, rule.window_seconds)

        if count > rule.requests:
            return RateLimitDecision(False, 0, max(1, ttl))
        return RateLimitDecision(True, rule.requests - count, ttl)


in_memory_limiter = InMemoryRateLimiter()
redis_limiter = RedisRateLimiter(redis_client)


async def check_rate_limit(client_key: str, rule: RateLimitRule) -> RateLimitDecision:
    """Count a request against the shared counters when Redis is up, local ones otherwise."""
    limiter = redis_limiter if redis_client.available else in_memory_limiter
    return await limiter.hit(f"rl:{rule.name}:{client_key}", rule)


def rate_limit(rule_name: str):
    """FastAPI dependency enforcing the named rule.

    Usage:
        @router.post("/generate-smile", dependencies=[Depends(rate_limit("generation"))])
    """
    rule = RULES[rule_name]

    async def enforce(request: Request) -> None:
        ip = client_ip(request)
        decision = await check_rate_limit(ip, rule)
        if not decision.allowed:
            logger.warning(
                f"Rate limit '{rule.name}' exceeded on {request.url.path}",
                extra={"client_ip": ip, "retry_after": decision.retry_after},
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
                headers={"Retry-After": str(decision.retry_after)},
            )

    return enforce
