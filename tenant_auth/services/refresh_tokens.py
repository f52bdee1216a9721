"""
services/refresh_tokens.py
--------------------------
Refresh token lifecycle.

Policy: one live refresh token per user. issue() deletes every prior token
for the user before inserting the new one, inside the same transaction and
after taking the store's per-user lock, so two concurrent logins for one
account can never leave zero or two valid tokens. Logging in anywhere
revokes refresh capability everywhere else.

exchange() does not rotate: the same refresh token stays valid until its own
expiry. Only the access token is renewed.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Union

from tenant_auth.core.config import Settings
from tenant_auth.core.logging import get_logger
from tenant_auth.db.base import as_utc
from tenant_auth.models.refresh_token import RefreshToken
from tenant_auth.models.user import User
from tenant_auth.services.store import AuthStore

logger = get_logger(__name__)


class RefreshFailureReason(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class RefreshFailure:
    reason: RefreshFailureReason
    message: str


@dataclass(frozen=True)
class RefreshExchange:
    user: User
    refresh_token: RefreshToken


ExchangeResult = Union[RefreshExchange, RefreshFailure]


class RefreshTokenManager:

    def __init__(self, store: AuthStore, settings: Settings) -> None:
        self._store = store
        self._ttl = timedelta(milliseconds=settings.REFRESH_TOKEN_EXPIRE_MS)

    async def issue(self, user: User, now: Optional[datetime] = None) -> RefreshToken:
        """Create a new refresh token for `user`, superseding all prior ones."""
        now = now or datetime.now(timezone.utc)

        await self._store.lock_user(user.id)
        superseded = await self._store.delete_refresh_tokens_for_user(user.id)

        refresh_token = RefreshToken(
            token=secrets.token_urlsafe(48),
            user_id=user.id,
            user=user,
            expiry_date=now + self._ttl,
            created_at=now,
        )
        refresh_token = await self._store.save_refresh_token(refresh_token)

        logger.info(
            "Refresh token issued",
            user_id=user.id,
            superseded=superseded,
            expires_at=refresh_token.expiry_date.isoformat(),
        )
        return refresh_token

    async def exchange(self, token: str, now: Optional[datetime] = None) -> ExchangeResult:
        """
        Look up a refresh token and return its owner.

        An expired token is deleted (and the deletion committed, so it holds
        even though the caller then fails the request) before reporting
        EXPIRED.
        """
        now = now or datetime.now(timezone.utc)

        refresh_token = await self._store.find_refresh_token(token) if token else None
        if refresh_token is None:
            return RefreshFailure(RefreshFailureReason.NOT_FOUND, "Refresh token not found")

        if as_utc(refresh_token.expiry_date) <= now:
            user_id = refresh_token.user_id
            await self._store.delete_refresh_token(refresh_token)
            await self._store.commit()
            logger.info("Expired refresh token removed", user_id=user_id)
            return RefreshFailure(
                RefreshFailureReason.EXPIRED,
                "Refresh token was expired. Please sign in again",
            )

        return RefreshExchange(user=refresh_token.user, refresh_token=refresh_token)
