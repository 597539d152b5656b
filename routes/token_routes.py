"""
Token endpoints.

POST /api/tokens          — issue a token (201)
GET  /api/tokens?userId=  — list the user's non-expired tokens (200)

Both require the ``x-api-key`` header. Request validation failures become
400 responses through the global RequestValidationError handler.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError as PydanticValidationError

from dependencies import get_token_manager, require_api_key
from errors import ValidationError
from schemas.dto.requests.token import CreateTokenRequest, ListTokensQuery
from schemas.dto.responses.token import ErrorResponse, TokenResponse
from services.token_service import TokenLifecycleManager

router = APIRouter(
    prefix="/api/tokens",
    tags=["tokens"],
    dependencies=[Depends(require_api_key)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


@router.post("", status_code=201, response_model=TokenResponse)
async def create_token(
    body: CreateTokenRequest,
    manager: TokenLifecycleManager = Depends(get_token_manager),
) -> TokenResponse:
    token = await manager.create_token(body)
    return TokenResponse.from_token(token)


@router.get("", response_model=list[TokenResponse])
async def list_tokens(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    manager: TokenLifecycleManager = Depends(get_token_manager),
) -> list[TokenResponse]:
    try:
        query = ListTokensQuery.model_validate({"userId": user_id or ""})
    except PydanticValidationError:
        raise ValidationError(
            "Validation failed",
            details={"userId": ["userId is required"]},
        )
    tokens = await manager.list_active_tokens(query.user_id)
    return [TokenResponse.from_token(t) for t in tokens]
