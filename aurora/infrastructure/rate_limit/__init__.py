"""レート制限"""

from aurora.core.config import Settings

from .limiter import (
    ANALYSIS,
    GENERAL,
    QUESTIONS,
    RateLimiter,
    RateLimitPolicy,
    build_policies,
    rate_limit_headers,
    rate_limit_key,
)
from .store import (
    InMemoryRateLimitStore,
    RateLimitRecord,
    RateLimitResult,
    RateLimitStore,
    RedisRateLimitStore,
)


def create_rate_limit_store(settings: Settings) -> RateLimitStore:
    """設定に応じた保存先を生成"""
    if settings.RATE_LIMIT_BACKEND == "redis":
        return RedisRateLimitStore.from_settings(
            settings.REDIS_HOST, settings.REDIS_PORT, settings.REDIS_DB
        )
    return InMemoryRateLimitStore(
        max_keys=settings.RATE_LIMIT_MAX_KEYS,
        evict_ratio=settings.RATE_LIMIT_EVICT_RATIO,
    )


def create_rate_limiter(settings: Settings) -> RateLimiter:
    """設定からRateLimiterを生成"""
    return RateLimiter(
        store=create_rate_limit_store(settings),
        policies=build_policies(settings),
        whitelist=settings.rate_limit_whitelist,
    )


__all__ = [
    "ANALYSIS",
    "GENERAL",
    "QUESTIONS",
    "RateLimiter",
    "RateLimitPolicy",
    "build_policies",
    "rate_limit_headers",
    "rate_limit_key",
    "InMemoryRateLimitStore",
    "RateLimitRecord",
    "RateLimitResult",
    "RateLimitStore",
    "RedisRateLimitStore",
    "create_rate_limit_store",
    "create_rate_limiter",
]
