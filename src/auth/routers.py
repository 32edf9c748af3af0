from typing import Annotated

from fastapi import APIRouter, Depends, Response

from src.auth.cookies import clear_refresh_cookie, set_refresh_cookie
from src.auth.dependencies import get_jwt_config, get_presented_refresh_token
from src.auth.schemas import TokenPairModel
from src.auth.usecases.revoke_refresh_token import (
    RevokeRefreshTokenUseCase,
    get_revoke_refresh_token_use_case,
)
from src.auth.usecases.rotate_refresh_token import (
    RotateRefreshTokenUseCase,
    get_rotate_refresh_token_use_case,
)
from src.core.schemas import SuccessResponse
from src.main.config import JWTConfig

router = APIRouter()


@router.post("/tokens/refresh", response_model=TokenPairModel)
async def refresh_tokens(
    response: Response,
    refresh_token: Annotated[str, Depends(get_presented_refresh_token)],
    use_case: Annotated[
        RotateRefreshTokenUseCase, Depends(get_rotate_refresh_token_use_case)
    ],
    jwt_config: Annotated[JWTConfig, Depends(get_jwt_config)],
) -> TokenPairModel:
    """
    Exchange a refresh token for a new access/refresh pair.
    The presented refresh token can not be used again afterwards.
    """
    tokens = await use_case.execute(refresh_token)

    response.headers[jwt_config.ACCESS_TOKEN_HEADER] = f"Bearer {tokens.access_token}"
    set_refresh_cookie(response, tokens.refresh_token, tokens.expires_in, jwt_config)

    return TokenPairModel(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
    )


@router.delete("/tokens/refresh", response_model=SuccessResponse)
async def revoke_refresh_token(
    response: Response,
    refresh_token: Annotated[str, Depends(get_presented_refresh_token)],
    use_case: Annotated[
        RevokeRefreshTokenUseCase, Depends(get_revoke_refresh_token_use_case)
    ],
    jwt_config: Annotated[JWTConfig, Depends(get_jwt_config)],
) -> SuccessResponse:
    """
    Sign out: drop the refresh token record and clear the cookie.
    """
    removed = await use_case.execute(refresh_token)
    clear_refresh_cookie(response, jwt_config)
    return SuccessResponse(success=removed)
