from datetime import datetime

from pydantic import Field

from src.core.schemas import Base


class IssuedTokens(Base):
    """A freshly minted access/refresh pair and the refresh token's lifetime."""

    access_token: str
    refresh_token: str
    expires_at: datetime
    expires_in: int = Field(ge=0)


class TokenPairModel(Base):
    access_token: str
    refresh_token: str
    expires_in: int
