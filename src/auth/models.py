"""
Persisted state of a single refresh token.

A record lives in Redis under a key derived from the token string itself
(see ``src.auth.keys``), so one lookup answers both "does this token exist"
and "is it still usable".
"""

from datetime import datetime
import json
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    ValidationError,
    field_validator,
)

from src.core.errors.exceptions import TokenRecordCorruptedException
from src.core.utils.datetime_utils import ensure_utc


class TokenRecord(BaseModel):
    """
    Wire format: ``{"subjectId": str, "valid": bool, "expiresAt": ISO-8601}``.

    ``valid`` only ever moves from ``True`` to ``False``; use :meth:`invalidate`
    to obtain the rotated copy.
    """

    subject_id: str = Field(alias="subjectId", min_length=1)
    valid: StrictBool
    expires_at: datetime = Field(alias="expiresAt")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("subject_id", mode="before")
    @classmethod
    def _coerce_subject_id(cls, value: Any) -> Any:
        # Integer principal ids are stored in their string form
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("expires_at")
    @classmethod
    def _normalize_expires_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @classmethod
    def issued(cls, subject_id: str | int, expires_at: datetime) -> "TokenRecord":
        return cls(subjectId=subject_id, valid=True, expiresAt=expires_at)

    def invalidate(self) -> "TokenRecord":
        return self.model_copy(update={"valid": False})

    def is_usable(self, now: datetime) -> bool:
        return is_usable(self, now)

    def to_json(self) -> str:
        return json.dumps(
            {
                "subjectId": self.subject_id,
                "valid": self.valid,
                "expiresAt": self.expires_at.isoformat(),
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> "TokenRecord":
        """
        Decode a stored value.

        Raises:
            TokenRecordCorruptedException: the value is not a well-formed record.
        """
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise TokenRecordCorruptedException(
                "Stored refresh token record is malformed",
                additional_info={"errors": exc.error_count()},
            ) from exc


def is_usable(record: TokenRecord, now: datetime) -> bool:
    """A token is usable only while it is valid and its logical expiry lies ahead."""
    return record.valid and record.expires_at > ensure_utc(now)
