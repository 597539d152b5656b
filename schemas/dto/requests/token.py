"""
Request DTOs for token endpoints.

CreateTokenRequest — POST /api/tokens
ListTokensQuery    — GET /api/tokens?userId=...
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


class CreateTokenRequest(BaseModel):
    """Request body for POST /api/tokens."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    scopes: list[str]
    expires_in_minutes: StrictInt = Field(alias="expiresInMinutes")

    @field_validator("user_id", mode="after")
    @classmethod
    def _user_id_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("userId must be a non-empty string")
        return v

    @field_validator("scopes", mode="after")
    @classmethod
    def _scopes_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("scopes must be a non-empty array")
        return v

    @field_validator("expires_in_minutes", mode="after")
    @classmethod
    def _positive_lifetime(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("expiresInMinutes must be a positive integer")
        return v


class ListTokensQuery(BaseModel):
    """Query parameters for GET /api/tokens."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")

    @field_validator("user_id", mode="after")
    @classmethod
    def _user_id_required(cls, v: str) -> str:
        if not v:
            raise ValueError("userId is required")
        return v
