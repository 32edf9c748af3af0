from fastapi import Depends, Request
from redis.asyncio import Redis

from src.auth.minting import JWTTokenMinter, TokenMinter
from src.auth.store import TokenStore
from src.core.errors.exceptions import UnauthorizedException
from src.core.redis.dependencies import get_redis_client
from src.main.config import JWTConfig, config


def get_jwt_config() -> JWTConfig:
    return config.jwt


def get_token_store(
    redis_client: Redis = Depends(get_redis_client),
    jwt_config: JWTConfig = Depends(get_jwt_config),
) -> TokenStore:
    return TokenStore(redis_client=redis_client, jwt_config=jwt_config)


def get_token_minter(
    jwt_config: JWTConfig = Depends(get_jwt_config),
) -> TokenMinter:
    return JWTTokenMinter(jwt_config=jwt_config)


def resolve_refresh_token(request: Request, jwt_config: JWTConfig) -> str | None:
    """
    Find the presented refresh token: the refresh cookie first, then an
    ``Bearer <token>`` value in the configured access token header.
    """
    cookie_token = request.cookies.get(jwt_config.REFRESH_TOKEN_COOKIE)
    if cookie_token and cookie_token.strip():
        return cookie_token.strip()

    header_value = request.headers.get(jwt_config.ACCESS_TOKEN_HEADER)
    if header_value and header_value.lower().startswith("bearer "):
        header_token = header_value[7:].strip()
        if header_token:
            return header_token

    return None


async def get_presented_refresh_token(
    request: Request,
    jwt_config: JWTConfig = Depends(get_jwt_config),
) -> str:
    """
    Raises:
        UnauthorizedException: no refresh token in cookie or header
    """
    token = resolve_refresh_token(request, jwt_config)
    if token is None:
        raise UnauthorizedException("Refresh token not provided")
    return token
