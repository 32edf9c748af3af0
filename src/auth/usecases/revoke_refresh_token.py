from fastapi import Depends

from loggers import get_logger
from src.auth.dependencies import get_token_store
from src.auth.store import TokenStore
from src.core.utils.security import mask_token

logger = get_logger(__name__)


class RevokeRefreshTokenUseCase:
    """Delete a refresh token record (sign-out). Safe to repeat."""

    def __init__(self, token_store: TokenStore) -> None:
        self.token_store = token_store

    async def execute(self, presented_token: str) -> bool:
        removed = await self.token_store.delete(presented_token)
        if removed:
            logger.info(
                "[RevokeRefreshToken] Revoked refresh token %s",
                mask_token(presented_token),
            )
        else:
            logger.debug(
                "[RevokeRefreshToken] Nothing to revoke for %s",
                mask_token(presented_token),
            )
        return removed


def get_revoke_refresh_token_use_case(
    token_store: TokenStore = Depends(get_token_store),
) -> RevokeRefreshTokenUseCase:
    return RevokeRefreshTokenUseCase(token_store=token_store)
