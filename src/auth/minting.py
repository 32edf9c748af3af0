import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import uuid4

import jwt

from loggers import get_logger
from src.auth.jwt_payload_schema import AccessTokenPayload
from src.core.utils.datetime_utils import get_utc_now
from src.core.utils.security import generate_opaque_token
from src.main.config import JWTConfig

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MintedRefreshToken:
    token: str
    expires_at: datetime


class TokenMinter(Protocol):
    """
    Capability that produces new credentials for a subject.

    Implementations may block (signing, key lookups); callers dispatch them
    to a worker thread.
    """

    def mint_access_token(self, subject_id: str) -> str: ...

    def mint_refresh_token(self, subject_id: str) -> MintedRefreshToken: ...


class JWTTokenMinter:
    """
    Default minter: signed JWT access tokens and opaque random refresh tokens.

    The refresh token carries no identity; the subject is only known through
    the record stored under it.
    """

    def __init__(
        self,
        jwt_config: JWTConfig,
        clock: Callable[[], datetime] = get_utc_now,
    ) -> None:
        self.jwt_config = jwt_config
        self.clock = clock

    def mint_access_token(self, subject_id: str) -> str:
        now = self.clock()
        expire = now + self.jwt_config.access_token_lifetime

        payload: AccessTokenPayload = {
            "sub": str(subject_id),
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
            "jti": str(uuid4()),
            "mode": "access_token",
        }

        encoded_jwt = jwt.encode(
            dict(payload), self.jwt_config.JWT_SECRET_KEY, self.jwt_config.ALGORITHM
        )
        return str(encoded_jwt)

    def mint_refresh_token(self, subject_id: str) -> MintedRefreshToken:
        token = generate_opaque_token(self.jwt_config.REFRESH_TOKEN_BYTE_LENGTH)
        expires_at = self.clock() + self.jwt_config.refresh_token_lifetime

        logger.debug(
            "[TokenMinter] Refresh token minted for subject '%s' (length=%s)",
            subject_id,
            len(token),
        )
        return MintedRefreshToken(token=token, expires_at=expires_at)


async def mint_token_pair(
    minter: TokenMinter, subject_id: str
) -> tuple[str, MintedRefreshToken]:
    """
    Mint an access token and a refresh token for ``subject_id``.

    Both calls may block, so they run in the default thread pool, side by side.
    """
    access_token, refresh_token = await asyncio.gather(
        asyncio.to_thread(minter.mint_access_token, subject_id),
        asyncio.to_thread(minter.mint_refresh_token, subject_id),
    )
    return access_token, refresh_token
