from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, cast

from redis.asyncio import Redis
import redis.exceptions as redisExc

from loggers import get_logger
from src.auth.keys import build_refresh_token_key
from src.auth.models import TokenRecord
from src.auth.redis_scripts import INVALIDATE_AND_FETCH_PREVIOUS_SCRIPT
from src.core.errors.exceptions import StoreUnavailableException
from src.core.utils.datetime_utils import get_utc_now, milliseconds
from src.core.utils.security import mask_token
from src.main.config import JWTConfig

logger = get_logger(__name__)


class TokenStore:
    """
    Redis backed storage of refresh token records.

    Every method takes the raw refresh token and derives the key itself.
    Redis failures are raised as ``StoreUnavailableException``; stored values
    that can not be decoded are raised as ``TokenRecordCorruptedException``.
    """

    invalidate_script: str = INVALIDATE_AND_FETCH_PREVIOUS_SCRIPT

    def __init__(
        self,
        redis_client: Redis,
        jwt_config: JWTConfig,
        clock: Callable[[], datetime] = get_utc_now,
    ) -> None:
        self.redis_client = redis_client
        self.jwt_config = jwt_config
        self.clock = clock
        self._invalidate_sha: str | None = None

    def key_for(self, token: str) -> str:
        return build_refresh_token_key(token, self.jwt_config)

    async def put(self, token: str, record: TokenRecord, ttl: timedelta | int) -> None:
        """
        Unconditionally write ``record`` with an explicit TTL.

        The TTL is clamped so the physical entry never outlives
        ``record.expires_at``.
        """
        requested = ttl if isinstance(ttl, timedelta) else timedelta(seconds=ttl)
        remaining = record.expires_at - self.clock()
        if remaining <= timedelta(0):
            raise ValueError(
                "Refusing to store a refresh token record that already expired"
            )

        ttl_ms = milliseconds(min(requested, remaining))
        if ttl_ms <= 0:
            raise ValueError("Refresh token TTL must be positive")

        with self._translate_errors("put", token):
            await self.redis_client.set(
                self.key_for(token), record.to_json(), px=ttl_ms
            )

    async def get(self, token: str) -> TokenRecord | None:
        with self._translate_errors("get", token):
            raw = await self.redis_client.get(self.key_for(token))
        if raw is None:
            return None
        return TokenRecord.from_json(raw)

    async def delete(self, token: str) -> bool:
        with self._translate_errors("delete", token):
            deleted = await self.redis_client.delete(self.key_for(token))
        return bool(deleted)

    async def remaining_ttl(self, token: str) -> timedelta | None:
        """Remaining physical lifetime, ``None`` if missing or without a TTL."""
        with self._translate_errors("pttl", token):
            ttl_ms = await self.redis_client.pttl(self.key_for(token))
        if ttl_ms is None or int(ttl_ms) < 0:
            return None
        return timedelta(milliseconds=int(ttl_ms))

    async def invalidate_and_fetch_previous(self, token: str) -> TokenRecord | None:
        """
        Atomically mark the record invalid, keeping its remaining TTL, and return
        the record as it was before this call.

        Returns ``None`` without side effects when no record exists.
        """
        with self._translate_errors("invalidate", token):
            raw = await self._run_invalidate_script(self.key_for(token))
        if raw is None:
            return None
        return TokenRecord.from_json(raw)

    async def _run_invalidate_script(self, key: str) -> Any:
        if self._invalidate_sha is None:
            self._invalidate_sha = await self._load_script()

        try:
            eval_result = self.redis_client.evalsha(self._invalidate_sha, 1, key)
            return await cast(Awaitable[Any], eval_result)
        except redisExc.NoScriptError:
            # Script cache flushed or Redis restarted
            logger.info("[TokenStore] Invalidation script missing, reloading")
            self._invalidate_sha = await self._load_script()
            eval_result = self.redis_client.evalsha(self._invalidate_sha, 1, key)
            return await cast(Awaitable[Any], eval_result)

    async def _load_script(self) -> str:
        script_load_result = self.redis_client.script_load(self.invalidate_script)
        return await cast(Awaitable[str], script_load_result)

    @contextmanager
    def _translate_errors(self, operation: str, token: str) -> Iterator[None]:
        try:
            yield
        except redisExc.RedisError as exc:
            logger.error(
                "[TokenStore] Redis %s failed for token %s: %s",
                operation,
                mask_token(token),
                exc,
            )
            raise StoreUnavailableException(
                "Token store is temporarily unavailable",
                additional_info={"operation": operation, "error": type(exc).__name__},
            ) from exc
