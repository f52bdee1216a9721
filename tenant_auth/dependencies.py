"""
dependencies.py
---------------
FastAPI dependency injection for the auth core and its guards.

Flow for a protected route:
  1. get_bearer_token reads `Authorization: Bearer <token>`; anything else
     counts as no token.
  2. get_optional_claims decodes it with the TokenCodec (no DB round-trip).
     Decode failures become 401s: TOKEN_EXPIRED for expiry, INVALID_TOKEN
     for everything else, each logged with its reason.
  3. require(policy) runs the authorization evaluator against the claims
     before the route body executes. The policy is plain data attached to
     the route registration:

        @router.get("/users", dependencies=[Depends(require(Policy.scopes("users:read:any")))])
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_auth.core.authorization import Policy, evaluate, extract_bearer_token
from tenant_auth.core.config import Settings, get_settings
from tenant_auth.core.errors import AccessDeniedError, InvalidTokenError, TokenExpiredError
from tenant_auth.core.logging import get_logger
from tenant_auth.core.security import PasswordHasher, get_password_hasher
from tenant_auth.core.tokens import ClaimSet, TokenCodec, TokenFailure
from tenant_auth.db.session import get_db
from tenant_auth.services.auth_service import AuthService
from tenant_auth.services.refresh_tokens import RefreshTokenManager
from tenant_auth.services.store import SqlAlchemyAuthStore

logger = get_logger(__name__)

SettingsDep = Annotated[Settings, Depends(get_settings)]
DbDep = Annotated[AsyncSession, Depends(get_db)]


def get_token_codec(settings: SettingsDep) -> TokenCodec:
    return TokenCodec(settings)


def get_hasher(settings: SettingsDep) -> PasswordHasher:
    return get_password_hasher(settings.BCRYPT_ROUNDS)


def get_auth_service(
    db: DbDep,
    settings: SettingsDep,
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    hasher: Annotated[PasswordHasher, Depends(get_hasher)],
) -> AuthService:
    store = SqlAlchemyAuthStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)
    return AuthService(
        store=store,
        codec=codec,
        refresh_tokens=RefreshTokenManager(store, settings),
        hasher=hasher,
        settings=settings,
    )


def get_bearer_token(
    authorization: Annotated[Optional[str], Header()] = None,
) -> Optional[str]:
    return extract_bearer_token(authorization)


def get_optional_claims(
    request: Request,
    token: Annotated[Optional[str], Depends(get_bearer_token)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> Optional[ClaimSet]:
    """Claims of a valid token, None when no token was sent."""
    if token is None:
        return None

    outcome = codec.decode(token)
    if isinstance(outcome, TokenFailure):
        logger.warning(
            "Access token rejected",
            reason=outcome.reason.value,
            detail=outcome.message,
            path=request.url.path,
        )
        if outcome.expired:
            raise TokenExpiredError("Session expired. Please sign in again")
        raise InvalidTokenError("Invalid authentication token", reason=outcome.reason.value)
    return outcome


def get_current_claims(
    claims: Annotated[Optional[ClaimSet], Depends(get_optional_claims)],
) -> ClaimSet:
    if claims is None:
        raise AccessDeniedError("No authentication token provided", reason="NO_TOKEN")
    return claims


def require(policy: Policy):
    """Build a guard dependency that enforces `policy` before the route runs."""

    def guard(
        request: Request,
        claims: Annotated[Optional[ClaimSet], Depends(get_optional_claims)],
    ) -> Optional[ClaimSet]:
        decision = evaluate(claims, policy)
        if not decision:
            logger.warning(
                "Access denied",
                reason=decision.reason.value,
                policy=policy.describe(),
                subject=claims.subject if claims else None,
                path=request.url.path,
            )
            raise AccessDeniedError(decision.message, reason=decision.reason.value)
        return claims

    return guard


CurrentClaims = Annotated[ClaimSet, Depends(get_current_claims)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
