"""
services/auth_service.py
------------------------
Signup, login and refresh flows.

Each flow is a short linear protocol that fails fast on the first error.
The flow's store calls run in one transaction (the request session), so a
failure leaves nothing behind: a rejected login never creates a refresh
token, a conflicting signup never creates a user.

Access tokens always carry claims derived from the *current* user record:
roles and tenant are re-read and scopes re-derived on every issuance,
including refresh.
"""

from typing import Optional

from tenant_auth.core.config import Settings
from tenant_auth.core.errors import (
    ConfigurationError,
    ConflictError,
    NotFoundError,
    TokenExpiredError,
    UnauthorizedError,
)
from tenant_auth.core.logging import get_logger
from tenant_auth.core.scopes import DEFAULT_SIGNUP_ROLES, derive_scopes, normalize_roles
from tenant_auth.core.security import PasswordHasher
from tenant_auth.core.tokens import ClaimSet, TokenCodec
from tenant_auth.models.user import User
from tenant_auth.schemas.auth import AuthResponse
from tenant_auth.schemas.user import UserResponse
from tenant_auth.services.refresh_tokens import (
    RefreshFailure,
    RefreshFailureReason,
    RefreshTokenManager,
)
from tenant_auth.services.store import AuthStore

logger = get_logger(__name__)


class AuthService:

    def __init__(
        self,
        store: AuthStore,
        codec: TokenCodec,
        refresh_tokens: RefreshTokenManager,
        hasher: PasswordHasher,
        settings: Settings,
    ) -> None:
        self._store = store
        self._codec = codec
        self._refresh_tokens = refresh_tokens
        self._hasher = hasher
        self._default_tenant_slug = settings.DEFAULT_TENANT_SLUG

    # ── Flows ─────────────────────────────────────────────────────────────────

    async def signup(self, email: str, raw_password: str, name: str) -> AuthResponse:
        if await self._store.exists_user_with_email(email):
            raise ConflictError("Email is already in use")

        tenant = await self._store.find_tenant_by_slug(self._default_tenant_slug)
        if tenant is None:
            logger.error("Default tenant missing", slug=self._default_tenant_slug)
            raise ConfigurationError("Default tenant not found")

        user = User(
            email=email,
            password=await self._hasher.hash(raw_password),
            name=name,
            tenant_id=tenant.id,
            enabled=True,
        )
        user.set_roles(DEFAULT_SIGNUP_ROLES)
        user = await self._store.save_user(user)

        access_token = self.issue_access_token(user)
        refresh_token = await self._refresh_tokens.issue(user)

        logger.info("User signed up", user_id=user.id, tenant_id=user.tenant_id)
        return self._response(access_token, refresh_token.token)

    async def login(self, email: str, raw_password: str) -> AuthResponse:
        principal = await self._authenticate(email, raw_password)

        # Re-read after verification; a gap here means the store is inconsistent
        user = await self._store.find_user_by_email(principal)
        if user is None:
            raise NotFoundError("User not found")

        access_token = self.issue_access_token(user)
        refresh_token = await self._refresh_tokens.issue(user)

        logger.info("Login succeeded", user_id=user.id, tenant_id=user.tenant_id)
        return self._response(access_token, refresh_token.token)

    async def refresh_access_token(self, refresh_token: str) -> AuthResponse:
        outcome = await self._refresh_tokens.exchange(refresh_token)
        if isinstance(outcome, RefreshFailure):
            logger.info("Refresh rejected", reason=outcome.reason.value)
            if outcome.reason is RefreshFailureReason.EXPIRED:
                raise TokenExpiredError(outcome.message)
            raise NotFoundError(outcome.message)

        access_token = self.issue_access_token(outcome.user)
        logger.info("Access token refreshed", user_id=outcome.user.id)
        return self._response(access_token, outcome.refresh_token.token)

    async def get_current_identity(self, claims: ClaimSet) -> UserResponse:
        user = await self._store.find_user_by_email(claims.subject)
        if user is None:
            raise NotFoundError("User not found")
        return UserResponse.model_validate(user)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def build_claims(self, user: User, now: Optional[float] = None) -> ClaimSet:
        roles = normalize_roles(user.roles)
        return self._codec.build_claims(
            subject=user.email,
            tenant_id=user.tenant_id,
            roles=roles,
            scopes=sorted(derive_scopes(roles)),
            now=now,
        )

    def issue_access_token(self, user: User) -> str:
        return self._codec.encode(self.build_claims(user))

    async def _authenticate(self, email: str, raw_password: str) -> str:
        """Return the authenticated email or raise a generic UnauthorizedError."""
        user = await self._store.find_user_by_email(email)
        if user is None:
            await self._hasher.dummy_verify()
            logger.info("Login failed", reason="unknown_email")
            raise UnauthorizedError()
        if not user.enabled:
            logger.info("Login failed", reason="disabled", user_id=user.id)
            raise UnauthorizedError()
        if not await self._hasher.verify(raw_password, user.password):
            logger.info("Login failed", reason="bad_password", user_id=user.id)
            raise UnauthorizedError()
        return user.email

    def _response(self, access_token: str, refresh_token: str) -> AuthResponse:
        return AuthResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._codec.ttl_ms,
        )
