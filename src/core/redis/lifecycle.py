from collections.abc import Awaitable
import logging
from typing import cast

from fastapi import FastAPI
from redis.asyncio import Redis

logger = logging.getLogger("redis")


def create_redis_client(
    connection_url: str,
    *,
    socket_timeout: float | None = None,
    decode_responses: bool = True,
) -> Redis:
    """
    Create a Redis async client from URL. Token records are JSON strings,
    so responses are decoded by default.
    """
    try:
        client = Redis.from_url(
            connection_url,
            decode_responses=decode_responses,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cast(Redis, client)
    except Exception as exc:  # pragma: no cover - log path
        logger.exception("Failed to create Redis client: %s", exc)
        raise


async def on_redis_startup(
    app: FastAPI, connection_url: str, socket_timeout: float | None = None
) -> None:
    """
    Initialize a Redis client and attach it to app.state for DI access.
    """
    redis_client = create_redis_client(
        connection_url=connection_url, socket_timeout=socket_timeout
    )
    ping_result = redis_client.ping()
    if isinstance(ping_result, Awaitable):
        await ping_result
    elif not ping_result:
        raise RuntimeError("Redis ping failed during startup")
    app.state.redis_client = redis_client
    logger.info("Redis client created successfully.")


async def on_redis_shutdown(app: FastAPI) -> None:
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client:
        logger.info("Closing Redis client...")
        await redis_client.aclose()
        app.state.redis_client = None
        logger.info("Redis client closed.")
