from fastapi import Response

from src.main.config import JWTConfig


def set_refresh_cookie(
    response: Response, refresh_token: str, max_age: int, jwt_config: JWTConfig
) -> None:
    """Place the refresh token in an HttpOnly, SameSite=Strict cookie."""
    response.set_cookie(
        key=jwt_config.REFRESH_TOKEN_COOKIE,
        value=refresh_token,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=jwt_config.REFRESH_TOKEN_COOKIE_SECURE,
        samesite="strict",
    )


def clear_refresh_cookie(response: Response, jwt_config: JWTConfig) -> None:
    response.delete_cookie(
        key=jwt_config.REFRESH_TOKEN_COOKIE,
        path="/",
        httponly=True,
        secure=jwt_config.REFRESH_TOKEN_COOKIE_SECURE,
        samesite="strict",
    )
