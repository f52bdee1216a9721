"""
schemas/error.py
----------------
Error envelope returned for every failed request.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from tenant_auth.schemas.base import CamelModel


class ValidationErrorDetail(CamelModel):
    field: str = Field(..., examples=["email"])
    message: str = Field(..., examples=["value is not a valid email address"])
    code: str = Field(..., examples=["value_error"])


class ErrorResponse(CamelModel):
    code: str = Field(..., examples=["VALIDATION_ERROR"])
    message: str = Field(..., examples=["Validation failed"])
    details: Optional[List[ValidationErrorDetail]] = None
    timestamp: datetime
    path: str = Field(..., examples=["/api/auth/signup"])
    request_id: str
