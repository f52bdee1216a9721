"""
api/routes/auth.py
------------------
Authentication endpoints.

POST /api/auth/signup   — Self-registration into the default tenant.
POST /api/auth/login    — Exchange credentials for an access + refresh token.
POST /api/auth/refresh  — Exchange a refresh token for a new access token.
GET  /api/auth/me       — Return the authenticated user's profile.
"""

from fastapi import APIRouter, status

from tenant_auth.dependencies import AuthServiceDep, CurrentClaims
from tenant_auth.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RefreshTokenRequest,
    SignupRequest,
)
from tenant_auth.schemas.error import ErrorResponse
from tenant_auth.schemas.user import UserResponse

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
    responses={409: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
)
async def signup(body: SignupRequest, auth: AuthServiceDep) -> AuthResponse:
    """
    Create a new account in the default tenant with role ROLE_USER and
    return a token pair. Tenant selection is not accepted here.
    """
    return await auth.signup(body.email, body.password, body.name)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login and receive an access + refresh token",
    responses={401: {"model": ErrorResponse}},
)
async def login(body: LoginRequest, auth: AuthServiceDep) -> AuthResponse:
    """
    Authenticate with email + password. Any earlier refresh token of the
    account stops working.
    """
    return await auth.login(body.email, body.password)


@router.post(
    "/refresh",
    response_model=AuthResponse,
    summary="Renew the access token",
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def refresh(body: RefreshTokenRequest, auth: AuthServiceDep) -> AuthResponse:
    """
    The refresh token itself is returned unchanged; claims in the new
    access token reflect the user's current roles and tenant.
    """
    return await auth.refresh_access_token(body.refresh_token)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the currently authenticated user",
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_me(claims: CurrentClaims, auth: AuthServiceDep) -> UserResponse:
    return await auth.get_current_identity(claims)
