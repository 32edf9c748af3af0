from src.main.config import JWTConfig


def build_refresh_token_key(token: str, jwt_config: JWTConfig) -> str:
    """
    Redis key for a refresh token: ``{prefix}:{token}:{suffix}``.

    The same derivation is used for issuance, lookup, invalidation and deletion.
    """
    if not token:
        raise ValueError("Refresh token must be a non-empty string")
    return (
        f"{jwt_config.REFRESH_TOKEN_KEY_PREFIX}:"
        f"{token}:"
        f"{jwt_config.REFRESH_TOKEN_KEY_SUFFIX}"
    )
