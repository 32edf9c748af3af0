from typing import cast

from fastapi import Request
from redis.asyncio import Redis

from src.core.errors.exceptions import StoreUnavailableException


async def get_redis_client(request: Request) -> Redis:
    """
    Provide the Redis client stored on app.state by the startup lifecycle.

    A missing client means startup never connected, which callers see as an
    unavailable token store.
    """
    redis_client = getattr(request.app.state, "redis_client", None)
    if redis_client is None:
        raise StoreUnavailableException(
            "Token store is not connected",
            additional_info={"reason": "redis client missing on app.state"},
        )
    return cast(Redis, redis_client)
