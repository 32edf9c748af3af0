import secrets


def generate_opaque_token(byte_length: int) -> str:
    """
    Generate a URL-safe opaque token from ``byte_length`` random bytes.

    :param byte_length: Amount of entropy in bytes.
    :return: Base64url encoded string without padding.
    """
    return secrets.token_urlsafe(byte_length)


def mask_token(token: str | None, visible: int = 6) -> str:
    """
    Masks a token for logging, keeping only a short prefix.
    Mask pattern: abcdef***

    Args:
        token: str | None
            The raw token value.
        visible: int
            Number of leading characters to keep.

    Returns:
        str
            A masked version of the token that is safe to log.
    """
    if not token:
        return "***"
    if len(token) <= visible:
        return "***"
    return f"{token[:visible]}***"
