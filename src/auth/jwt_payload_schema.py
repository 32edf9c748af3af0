from typing import Literal, TypedDict


class AccessTokenPayload(TypedDict):
    """Claims carried by an access token"""

    sub: str  # Subject (principal) id
    iat: int  # Issued-at timestamp
    exp: int  # Expiration timestamp
    jti: str  # Unique token id
    mode: Literal["access_token"]
