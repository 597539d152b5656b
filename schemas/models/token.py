"""
Access token record model.

Maps to the ``token:<id>`` keys in the expiring store. The record is stored
as JSON with camelCase keys (``id, userId, scopes, createdAt, expiresAt,
token``), the same shape that is returned over the API.

``token`` is the bearer secret. It is never regenerated or rotated.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from shared.datetime_utils import parse_datetime, to_iso


class Token(BaseModel):
    """An issued access token. Immutable once created."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    user_id: str = Field(alias="userId")
    scopes: list[str]
    created_at: datetime = Field(alias="createdAt")
    expires_at: datetime = Field(alias="expiresAt")
    token: str

    @field_validator("created_at", "expires_at", mode="before")
    @classmethod
    def _as_utc(cls, v):
        parsed = parse_datetime(v)
        if parsed is None:
            raise ValueError(f"invalid timestamp: {v!r}")
        return parsed

    @field_serializer("created_at", "expires_at")
    def _serialize_timestamp(self, v: datetime) -> str:
        return to_iso(v)

    @property
    def lifetime(self) -> timedelta:
        return self.expires_at - self.created_at

    def to_storage(self) -> str:
        """Serialize to the JSON string written to the store."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_storage(cls, raw: str) -> "Token":
        """Parse a stored JSON record. Raises pydantic.ValidationError on bad data."""
        return cls.model_validate_json(raw)

    def to_public(self) -> dict:
        """Dict with camelCase keys, as returned by the HTTP API."""
        return self.model_dump(mode="json", by_alias=True)
