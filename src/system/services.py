from collections.abc import Awaitable
import logging

from redis.asyncio import Redis
import redis.exceptions as redisExc

from src.core.errors.exceptions import StoreUnavailableException
from src.system.schemas import HealthCheckResponse


class HealthService:
    def __init__(self, redis_client: Redis) -> None:
        self.redis_client = redis_client
        self.logger = logging.getLogger(__name__)

    async def get_status(self) -> HealthCheckResponse:
        if not await self._check_redis():
            raise StoreUnavailableException(
                "System health check failed",
                additional_info={"redis": False},
            )
        return HealthCheckResponse(status="ok", redis="ok")

    async def _check_redis(self) -> bool:
        try:
            ping_result = self.redis_client.ping()
            if isinstance(ping_result, Awaitable):
                return bool(await ping_result)
            return bool(ping_result)
        except redisExc.RedisError as exc:
            self.logger.error("Redis health check failed", exc_info=exc)
            return False
