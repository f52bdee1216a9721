"""
schemas/auth.py
---------------
Pydantic request/response models for the signup, login and refresh flows.

Naming convention:
  *Request  → inbound request body
  *Response → outbound response body
"""

from pydantic import EmailStr, Field, field_validator

from tenant_auth.schemas.base import CamelModel


class SignupRequest(CamelModel):
    email: EmailStr = Field(..., examples=["user@example.com"])
    password: str = Field(..., min_length=8, max_length=128, examples=["SecurePass123!"])
    name: str = Field(..., min_length=1, max_length=200, examples=["John Doe"])

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1, max_length=255)


class AuthResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Access token lifetime in milliseconds")
