from datetime import timedelta

import pytest
import redis.exceptions as redis_exc

from src.auth.keys import build_refresh_token_key
from src.auth.models import TokenRecord
from src.auth.store import TokenStore
from src.core.errors.exceptions import (
    StoreUnavailableException,
    TokenRecordCorruptedException,
)
from src.main.config import JWTConfig
from tests.fakes.redis import InMemoryRedis
from tests.helpers.clock import MutableClock


def test_key_uses_prefix_token_and_suffix(jwt_config: JWTConfig) -> None:
    config = jwt_config.model_copy(
        update={"REFRESH_TOKEN_KEY_PREFIX": "rt", "REFRESH_TOKEN_KEY_SUFFIX": "v1"}
    )

    assert build_refresh_token_key("abc", config) == "rt:abc:v1"


def test_key_rejects_empty_token(jwt_config: JWTConfig) -> None:
    with pytest.raises(ValueError):
        build_refresh_token_key("", jwt_config)


@pytest.mark.asyncio
async def test_put_then_get_returns_record(
    token_store: TokenStore, fake_redis: InMemoryRedis, clock: MutableClock
) -> None:
    record = TokenRecord.issued("user-1", clock() + timedelta(days=7))

    await token_store.put("tok-a", record, ttl=timedelta(days=7))

    assert await token_store.get("tok-a") == record
    assert "refresh:tok-a:rts" in fake_redis.keys_snapshot()


@pytest.mark.asyncio
async def test_get_missing_returns_none(token_store: TokenStore) -> None:
    assert await token_store.get("missing") is None


@pytest.mark.asyncio
async def test_put_clamps_ttl_to_logical_expiry(
    token_store: TokenStore, clock: MutableClock
) -> None:
    record = TokenRecord.issued("user-1", clock() + timedelta(minutes=5))

    await token_store.put("tok-a", record, ttl=timedelta(days=7))

    remaining = await token_store.remaining_ttl("tok-a")
    assert remaining is not None
    assert remaining <= timedelta(minutes=5)


@pytest.mark.asyncio
async def test_put_accepts_seconds(
    token_store: TokenStore, clock: MutableClock
) -> None:
    record = TokenRecord.issued("user-1", clock() + timedelta(days=1))

    await token_store.put("tok-a", record, ttl=60)

    remaining = await token_store.remaining_ttl("tok-a")
    assert remaining is not None
    assert timedelta(seconds=59) <= remaining <= timedelta(seconds=60)


@pytest.mark.asyncio
async def test_put_refuses_already_expired_record(
    token_store: TokenStore, clock: MutableClock
) -> None:
    record = TokenRecord.issued("user-1", clock() - timedelta(seconds=1))

    with pytest.raises(ValueError):
        await token_store.put("tok-a", record, ttl=60)


@pytest.mark.asyncio
async def test_record_disappears_after_ttl(
    token_store: TokenStore, fake_redis: InMemoryRedis, clock: MutableClock
) -> None:
    record = TokenRecord.issued("user-1", clock() + timedelta(days=1))
    await token_store.put("tok-a", record, ttl=10)

    fake_redis.advance(11)

    assert await token_store.get("tok-a") is None
    assert await token_store.remaining_ttl("tok-a") is None


@pytest.mark.asyncio
async def test_invalidate_returns_previous_and_marks_invalid(
    token_store: TokenStore, clock: MutableClock
) -> None:
    record = TokenRecord.issued("user-1", clock() + timedelta(days=1))
    await token_store.put("tok-a", record, ttl=timedelta(days=1))

    previous = await token_store.invalidate_and_fetch_previous("tok-a")
    second = await token_store.invalidate_and_fetch_previous("tok-a")

    assert previous == record
    assert second == record.invalidate()
    assert await token_store.get("tok-a") == record.invalidate()


@pytest.mark.asyncio
async def test_invalidate_preserves_remaining_ttl(
    token_store: TokenStore, fake_redis: InMemoryRedis, clock: MutableClock
) -> None:
    record = TokenRecord.issued("user-1", clock() + timedelta(days=1))
    await token_store.put("tok-a", record, ttl=100)
    fake_redis.advance(40)

    await token_store.invalidate_and_fetch_previous("tok-a")

    remaining = await token_store.remaining_ttl("tok-a")
    assert remaining is not None
    assert timedelta(seconds=59) <= remaining <= timedelta(seconds=60)


@pytest.mark.asyncio
async def test_invalidate_missing_returns_none_without_creating_key(
    token_store: TokenStore, fake_redis: InMemoryRedis
) -> None:
    assert await token_store.invalidate_and_fetch_previous("ghost") is None
    assert fake_redis.keys_snapshot() == {}


@pytest.mark.asyncio
async def test_invalidate_reloads_flushed_script(
    token_store: TokenStore, fake_redis: InMemoryRedis, clock: MutableClock
) -> None:
    record = TokenRecord.issued("user-1", clock() + timedelta(days=1))
    await token_store.put("tok-a", record, ttl=60)
    await token_store.invalidate_and_fetch_previous("missing")

    fake_redis.flush_scripts()

    assert await token_store.invalidate_and_fetch_previous("tok-a") == record


@pytest.mark.asyncio
async def test_malformed_value_is_reported_as_corrupted(
    token_store: TokenStore, fake_redis: InMemoryRedis
) -> None:
    await fake_redis.set("refresh:tok-a:rts", "garbage", ex=60)

    with pytest.raises(TokenRecordCorruptedException):
        await token_store.get("tok-a")
    with pytest.raises(TokenRecordCorruptedException):
        await token_store.invalidate_and_fetch_previous("tok-a")

    assert fake_redis.keys_snapshot()["refresh:tok-a:rts"] == "garbage"


@pytest.mark.asyncio
async def test_delete_reports_whether_a_record_existed(
    token_store: TokenStore, clock: MutableClock
) -> None:
    record = TokenRecord.issued("user-1", clock() + timedelta(days=1))
    await token_store.put("tok-a", record, ttl=60)

    assert await token_store.delete("tok-a") is True
    assert await token_store.delete("tok-a") is False


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["get", "set", "delete", "evalsha"])
async def test_redis_errors_become_store_unavailable(
    token_store: TokenStore,
    fake_redis: InMemoryRedis,
    clock: MutableClock,
    operation: str,
) -> None:
    record = TokenRecord.issued("user-1", clock() + timedelta(days=1))
    await token_store.put("tok-a", record, ttl=60)
    fake_redis.fail_on(operation, redis_exc.TimeoutError("Timeout reading"))

    with pytest.raises(StoreUnavailableException):
        await token_store.get("tok-a")
        await token_store.put("tok-b", record, ttl=60)
        await token_store.delete("tok-a")
        await token_store.invalidate_and_fetch_previous("tok-a")
