from collections.abc import Callable
from datetime import datetime

from loggers import get_logger
from src.auth.minting import TokenMinter, mint_token_pair
from src.auth.models import TokenRecord
from src.auth.schemas import IssuedTokens
from src.auth.store import TokenStore
from src.core.errors.exceptions import MintingFailureException
from src.core.utils.datetime_utils import get_utc_now, seconds_until

logger = get_logger(__name__)


class IssueTokensUseCase:
    """Start a new token lineage for an authenticated subject (sign-in)."""

    def __init__(
        self,
        token_store: TokenStore,
        token_minter: TokenMinter,
        clock: Callable[[], datetime] = get_utc_now,
    ) -> None:
        self.token_store = token_store
        self.token_minter = token_minter
        self.clock = clock

    async def execute(self, subject_id: str | int) -> IssuedTokens:
        subject = str(subject_id)

        try:
            access_token, refresh = await mint_token_pair(self.token_minter, subject)
        except Exception as exc:
            logger.error(
                "[IssueTokens] Minting failed for subject '%s': %s", subject, exc
            )
            raise MintingFailureException(
                "Could not issue tokens",
                additional_info={"subject_id": subject},
            ) from exc

        now = self.clock()
        await self.token_store.put(
            refresh.token,
            TokenRecord.issued(subject, refresh.expires_at),
            ttl=refresh.expires_at - now,
        )

        logger.info("[IssueTokens] New token lineage for subject '%s'", subject)
        return IssuedTokens(
            access_token=access_token,
            refresh_token=refresh.token,
            expires_at=refresh.expires_at,
            expires_in=seconds_until(refresh.expires_at, now),
        )

