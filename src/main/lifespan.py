from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from loggers import get_logger
from src.core.redis.lifecycle import on_redis_shutdown, on_redis_startup
from src.main.config import config
from src.main.sentry import init_sentry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    init_sentry()
    await on_redis_startup(
        app, config.redis.dsn, socket_timeout=config.redis.REDIS_SOCKET_TIMEOUT
    )
    logger.info("Token store connected")

    yield

    await on_redis_shutdown(app)
    logger.info("Token store connection closed")
