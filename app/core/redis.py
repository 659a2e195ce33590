"""Redis client lifecycle management."""

import redis.asyncio as redis
from fastapi import Request

from app.core.settings import RedisConfig


async def init_redis(config: RedisConfig) -> redis.Redis:  # type: ignore[type-arg]
    """Initialize the Redis connection."""
    client = redis.from_url(config.url, decode_responses=True)
    await client.ping()
    return client


async def close_redis(client: redis.Redis | None) -> None:  # type: ignore[type-arg]
    """Close the Redis connection."""
    if client is not None:
        await client.aclose()


def get_redis(request: Request) -> redis.Redis:  # type: ignore[type-arg]
    """Get the Redis client bound to the running application."""
    client = getattr(request.app.state, "redis", None)
    if client is None:
        raise RuntimeError("Redis client not initialized")
    return client
