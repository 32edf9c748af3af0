from collections.abc import AsyncGenerator, Generator
import os

os.environ.setdefault("TESTING", "true")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")

from fastapi import FastAPI  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from src.auth.dependencies import get_jwt_config  # noqa: E402
from src.auth.store import TokenStore  # noqa: E402
from src.core.redis.dependencies import get_redis_client  # noqa: E402
from src.main.config import Config, JWTConfig, get_settings  # noqa: E402
from src.main.web import get_application  # noqa: E402
from tests.fakes.minting import StubTokenMinter  # noqa: E402
from tests.fakes.redis import InMemoryRedis  # noqa: E402
from tests.helpers.clock import MutableClock  # noqa: E402
from tests.helpers.overrides import DependencyOverrides  # noqa: E402


@pytest.fixture(scope="session")
def settings() -> Config:
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def jwt_config(settings: Config) -> JWTConfig:
    return settings.jwt.model_copy(update={"REFRESH_TOKEN_COOKIE_SECURE": False})


@pytest.fixture
def app() -> FastAPI:
    return get_application()


@pytest.fixture
def dependency_overrides(app: FastAPI) -> Generator[DependencyOverrides]:
    overrides = DependencyOverrides(app)
    yield overrides
    overrides.reset()


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def token_store(
    fake_redis: InMemoryRedis, jwt_config: JWTConfig, clock: MutableClock
) -> TokenStore:
    return TokenStore(
        redis_client=fake_redis,  # type: ignore[arg-type]
        jwt_config=jwt_config,
        clock=clock,
    )


@pytest.fixture
def token_minter(clock: MutableClock) -> StubTokenMinter:
    return StubTokenMinter(clock=clock)


@pytest.fixture
def app_with_fakes(
    app: FastAPI,
    dependency_overrides: DependencyOverrides,
    fake_redis: InMemoryRedis,
    jwt_config: JWTConfig,
    settings: Config,
) -> FastAPI:
    dependency_overrides.provide(get_redis_client, fake_redis)
    dependency_overrides.provide(get_jwt_config, jwt_config)
    dependency_overrides.provide(get_settings, settings)
    return app


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client


@pytest_asyncio.fixture
async def async_client_with_fakes(
    app_with_fakes: FastAPI,
) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app_with_fakes)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client
