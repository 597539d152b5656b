"""
Token lifecycle manager.

Issues scoped, short-lived access tokens and lists the ones still alive.

Storage layout (all keys live in the injected ExpiringKeyValueStore):
  token:<id>            JSON record, expires at the token's expiresAt (EXAT)
  user_tokens:<userId>  set of token ids ever issued to the user

The per-user set is not kept transactionally consistent with the records.
When a record has expired the set still names it; list_active_tokens treats
that as a stale entry, skips it and removes it from the set. A failed index
add after a successful record write leaves the token valid but unlisted until
it expires.
"""

from __future__ import annotations

import asyncio
import math
from datetime import datetime, timedelta
from typing import Callable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from errors import InvalidRequestError, StorageTimeoutError, StorageUnavailableError
from infrastructure.store.protocol import ExpiringKeyValueStore
from schemas.dto.requests.token import CreateTokenRequest
from schemas.models.token import Token
from shared.datetime_utils import parse_datetime, truncate_to_millis, utcnow
from shared.generators import generate_token_id, generate_token_secret
from shared.logging import get_logger

log = get_logger(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 2.0
DEFAULT_FETCH_CONCURRENCY = 16

# Sentinel for a record fetch that did not complete in time
_TIMED_OUT = object()


class TokenLifecycleManager:
    """Creates tokens and reconciles the per-user index against expiry.

    Holds no state between calls; everything lives in ``store``.
    """

    def __init__(
        self,
        store: ExpiringKeyValueStore,
        *,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        max_concurrent_fetches: int = DEFAULT_FETCH_CONCURRENCY,
        token_key_prefix: str = "token:",
        user_tokens_key_prefix: str = "user_tokens:",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if max_concurrent_fetches < 1:
            raise ValueError("max_concurrent_fetches must be at least 1")
        self._store = store
        self._fetch_timeout = fetch_timeout
        self._max_concurrent_fetches = max_concurrent_fetches
        self._token_key_prefix = token_key_prefix
        self._user_tokens_key_prefix = user_tokens_key_prefix
        self._clock = clock

    def token_key(self, token_id: str) -> str:
        return f"{self._token_key_prefix}{token_id}"

    def user_tokens_key(self, user_id: str) -> str:
        return f"{self._user_tokens_key_prefix}{user_id}"

    # ── Create ───────────────────────────────────────────────────────────────

    async def create_token(self, request: CreateTokenRequest) -> Token:
        """Issue a new token and register it in the owner's index.

        Raises:
            InvalidRequestError: empty user id or scopes, or a lifetime that is
                not a positive integer. Nothing is written in that case.
            StorageUnavailableError: the store could not be written.
        """
        user_id = request.user_id
        scopes = list(request.scopes or [])
        lifetime = request.expires_in_minutes

        if not user_id:
            raise InvalidRequestError(
                "userId must be a non-empty string", field="userId"
            )
        if not scopes:
            raise InvalidRequestError(
                "scopes must be a non-empty array", field="scopes"
            )
        if isinstance(lifetime, bool) or not isinstance(lifetime, int) or lifetime <= 0:
            raise InvalidRequestError(
                "expiresInMinutes must be a positive integer",
                field="expiresInMinutes",
            )

        created_at = truncate_to_millis(self._clock())
        expires_at = created_at + timedelta(minutes=lifetime)

        token = Token(
            id=generate_token_id(),
            user_id=user_id,
            scopes=scopes,
            created_at=created_at,
            expires_at=expires_at,
            token=generate_token_secret(),
        )

        await self._store.set_with_absolute_expiry(
            self.token_key(token.id),
            token.to_storage(),
            math.floor(expires_at.timestamp()),
        )
        await self._store.add_to_set(self.user_tokens_key(user_id), token.id)

        log.info(
            "token_created",
            token_id=token.id,
            user_id=user_id,
            scopes=scopes,
            expires_at=expires_at.isoformat(),
        )
        return token

    # ── Read ─────────────────────────────────────────────────────────────────

    async def list_active_tokens(self, user_id: str) -> list[Token]:
        """Return the user's tokens whose expiresAt is still in the future.

        Index entries whose record is gone are pruned from the index on the
        way. Output order is unspecified.
        """
        index_key = self.user_tokens_key(user_id)
        token_ids = await self._store.list_set_members(index_key)
        if not token_ids:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrent_fetches)

        async def fetch(token_id: str):
            async with semaphore:
                return await self._fetch_record(token_id)

        ordered_ids = list(token_ids)
        tasks = [asyncio.ensure_future(fetch(tid)) for tid in ordered_ids]
        try:
            records = await asyncio.gather(*tasks)
        except BaseException:
            # First failure wins; no fetch may outlive the call
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        now = self._clock()
        active: list[Token] = []
        stale: list[str] = []
        timed_out = 0

        for token_id, raw in zip(ordered_ids, records):
            if raw is _TIMED_OUT:
                timed_out += 1
                continue
            if raw is None:
                stale.append(token_id)
                continue
            token = self._parse_record(token_id, raw)
            if token is not None and token.expires_at > now:
                active.append(token)

        for token_id in stale:
            await self._prune_index_entry(index_key, user_id, token_id)

        log.debug(
            "tokens_listed",
            user_id=user_id,
            token_count=len(active),
            stale_token_count=len(stale),
            timed_out=timed_out,
        )
        return active

    async def get_token(self, token_id: str) -> Optional[Token]:
        """Direct lookup by id; None when absent or logically expired."""
        raw = await self._store.get(self.token_key(token_id))
        if raw is None:
            return None
        token = self._parse_record(token_id, raw)
        if token is None or self.is_expired(token.expires_at):
            return None
        return token

    def is_expired(self, expires_at: Union[str, datetime]) -> bool:
        """True when *expires_at* is at or before now. Advisory only."""
        parsed = parse_datetime(expires_at)
        if parsed is None:
            raise InvalidRequestError(
                "expiresAt must be an ISO 8601 timestamp", field="expiresAt"
            )
        return parsed <= self._clock()

    # ── Internals ────────────────────────────────────────────────────────────

    async def _fetch_record(self, token_id: str):
        try:
            return await asyncio.wait_for(
                self._store.get(self.token_key(token_id)),
                timeout=self._fetch_timeout,
            )
        except (asyncio.TimeoutError, StorageTimeoutError):
            log.warning("token_fetch_timed_out", token_id=token_id)
            return _TIMED_OUT

    def _parse_record(self, token_id: str, raw: str) -> Optional[Token]:
        try:
            return Token.from_storage(raw)
        except PydanticValidationError as e:
            log.error(
                "token_record_corrupt",
                token_id=token_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def _prune_index_entry(
        self, index_key: str, user_id: str, token_id: str
    ) -> None:
        try:
            await self._store.remove_from_set(index_key, token_id)
            log.debug("stale_token_pruned", user_id=user_id, token_id=token_id)
        except StorageUnavailableError as e:
            # Best effort: the next listing retries the same cleanup
            log.warning(
                "stale_token_prune_failed",
                user_id=user_id,
                token_id=token_id,
                error=str(e),
                error_type=type(e).__name__,
            )
