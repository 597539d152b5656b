"""
Response DTOs for token endpoints.

TokenResponse — POST /api/tokens (201) and each entry of GET /api/tokens.

The secret (``token``) is included on both endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.token import Token


class TokenResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(alias="userId")
    scopes: list[str]
    created_at: str = Field(alias="createdAt")  # ISO 8601, UTC
    expires_at: str = Field(alias="expiresAt")  # ISO 8601, UTC
    token: str

    @classmethod
    def from_token(cls, token: Token) -> "TokenResponse":
        return cls(**token.to_public())


class ErrorResponse(BaseModel):
    """Shape of every error body produced by the global handlers."""

    error: str
    code: str
    field: Optional[str] = None
    details: Optional[dict] = None
