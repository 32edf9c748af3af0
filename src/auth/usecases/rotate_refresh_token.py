"""
Refresh token rotation.

A presented token moves through three externally visible states:
``Issued`` (valid, unexpired) -> ``Invalidated`` (valid=false) -> ``Absent``.
Only ``Issued`` tokens are rotated; presenting an ``Invalidated`` token is a
replay and is reported as reuse.

The order of work is fixed: lookup, validate, invalidate, mint, persist.
Invalidation happens before minting, so a minting failure ends the session
instead of leaving the old token usable.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import NoReturn

from fastapi import Depends

from loggers import get_logger
from src.auth.dependencies import get_token_minter, get_token_store
from src.auth.minting import TokenMinter, mint_token_pair
from src.auth.models import TokenRecord
from src.auth.schemas import IssuedTokens
from src.auth.store import TokenStore
from src.core.errors.exceptions import (
    MintingFailureException,
    StoreUnavailableException,
    TokenAlreadyInvalidatedException,
    TokenExpiredException,
    TokenNotFoundException,
)
from src.core.utils.datetime_utils import get_utc_now, seconds_until
from src.core.utils.security import mask_token

logger = get_logger(__name__)

ReuseListener = Callable[[str, TokenRecord], Awaitable[None]]

# Rotations whose caller went away keep running until persisted
_inflight_rotations: set[asyncio.Task[IssuedTokens]] = set()


def _forget_rotation(task: asyncio.Task[IssuedTokens]) -> None:
    _inflight_rotations.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("[RotateRefreshToken] Rotation task finished with %r", exc)


class RotateRefreshTokenUseCase:
    """Exchange a live refresh token for a new access/refresh pair."""

    def __init__(
        self,
        token_store: TokenStore,
        token_minter: TokenMinter,
        clock: Callable[[], datetime] = get_utc_now,
        reuse_listener: ReuseListener | None = None,
    ) -> None:
        self.token_store = token_store
        self.token_minter = token_minter
        self.clock = clock
        self.reuse_listener = reuse_listener

    async def execute(self, presented_token: str) -> IssuedTokens:
        """
        Rotate ``presented_token``.

        Raises:
            TokenNotFoundException: no record exists for the token
            TokenAlreadyInvalidatedException: the token was already rotated (replay)
            TokenExpiredException: the record is valid but past its expiry
            StoreUnavailableException: Redis failed before the token was invalidated
            MintingFailureException: the token was invalidated but no replacement
                could be issued; the client has to sign in again
        """
        if not presented_token:
            raise TokenNotFoundException("Refresh token not found")

        record = await self.token_store.get(presented_token)
        await self._ensure_rotatable(presented_token, record)

        task = asyncio.ensure_future(self._invalidate_and_reissue(presented_token))
        _inflight_rotations.add(task)
        task.add_done_callback(_forget_rotation)

        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            logger.warning(
                "[RotateRefreshToken] Caller cancelled while rotating %s; "
                "finishing rotation in background",
                mask_token(presented_token),
            )
            raise

    async def _ensure_rotatable(
        self, presented_token: str, record: TokenRecord | None
    ) -> None:
        if record is None:
            logger.info(
                "[RotateRefreshToken] Unknown refresh token %s",
                mask_token(presented_token),
            )
            raise TokenNotFoundException("Refresh token not found")

        if not record.valid:
            await self._report_reuse(presented_token, record)

        if record.expires_at <= self.clock():
            logger.info(
                "[RotateRefreshToken] Expired refresh token for subject '%s'",
                record.subject_id,
            )
            raise TokenExpiredException(
                "Refresh token expired",
                additional_info={"subject_id": record.subject_id},
            )

    async def _invalidate_and_reissue(self, presented_token: str) -> IssuedTokens:
        previous = await self.token_store.invalidate_and_fetch_previous(
            presented_token
        )

        # Re-check the snapshot: a concurrent rotation may have won the race
        if previous is None:
            raise TokenNotFoundException("Refresh token not found")
        if not previous.valid:
            await self._report_reuse(presented_token, previous)

        subject_id = previous.subject_id

        try:
            access_token, refresh = await mint_token_pair(
                self.token_minter, subject_id
            )
        except Exception as exc:
            logger.error(
                "[RotateRefreshToken] Minting failed for subject '%s' after "
                "invalidation: %s",
                subject_id,
                exc,
            )
            raise MintingFailureException(
                "Could not issue new tokens, sign in again",
                additional_info={"subject_id": subject_id},
            ) from exc

        if refresh.token == presented_token:
            raise MintingFailureException(
                "Minted refresh token equals the presented one",
                additional_info={"subject_id": subject_id},
            )

        now = self.clock()
        try:
            await self.token_store.put(
                refresh.token,
                TokenRecord.issued(subject_id, refresh.expires_at),
                ttl=refresh.expires_at - now,
            )
        except (StoreUnavailableException, ValueError) as exc:
            logger.error(
                "[RotateRefreshToken] Could not persist replacement token for "
                "subject '%s': %s",
                subject_id,
                exc,
            )
            raise MintingFailureException(
                "Could not persist new refresh token, sign in again",
                additional_info={"subject_id": subject_id},
            ) from exc

        logger.info(
            "[RotateRefreshToken] Rotated %s -> %s for subject '%s'",
            mask_token(presented_token),
            mask_token(refresh.token),
            subject_id,
        )
        return IssuedTokens(
            access_token=access_token,
            refresh_token=refresh.token,
            expires_at=refresh.expires_at,
            expires_in=seconds_until(refresh.expires_at, now),
        )

    async def _report_reuse(
        self, presented_token: str, record: TokenRecord
    ) -> NoReturn:
        logger.warning(
            "[RotateRefreshToken] Reuse of rotated refresh token %s for subject '%s'",
            mask_token(presented_token),
            record.subject_id,
        )
        if self.reuse_listener is not None:
            try:
                await self.reuse_listener(presented_token, record)
            except Exception:
                # The reuse signal itself must still reach the caller
                logger.exception("[RotateRefreshToken] Reuse listener failed")
        raise TokenAlreadyInvalidatedException(
            "Refresh token has already been used",
            additional_info={"subject_id": record.subject_id},
        )


def get_rotate_refresh_token_use_case(
    token_store: TokenStore = Depends(get_token_store),
    token_minter: TokenMinter = Depends(get_token_minter),
) -> RotateRefreshTokenUseCase:
    return RotateRefreshTokenUseCase(token_store=token_store, token_minter=token_minter)
