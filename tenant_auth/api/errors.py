"""
api/errors.py
-------------
Exception handlers that render every failure as an ErrorResponse:

    {"code", "message", "details"?, "timestamp", "path", "requestId"}

AuthServiceError subclasses carry their own status and code. Request
validation failures list one detail per field. Anything unexpected is logged
with its traceback and answered with a generic INTERNAL_ERROR.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tenant_auth.core.errors import AuthServiceError, ValidationFailedError
from tenant_auth.core.logging import get_logger
from tenant_auth.schemas.error import ErrorResponse, ValidationErrorDetail

logger = get_logger(__name__)


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Optional[List[ValidationErrorDetail]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        code=code,
        message=message,
        details=details,
        timestamp=datetime.now(timezone.utc),
        path=request.url.path,
        request_id=str(uuid.uuid4()),
    )
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body, by_alias=True, exclude_none=True),
        headers=headers,
    )


def _field_name(loc) -> str:
    # Drop the "body"/"query" prefix FastAPI puts in front of the field path
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(AuthServiceError)
    async def handle_auth_service_error(request: Request, exc: AuthServiceError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "Request failed",
            path=request.url.path,
            method=request.method,
            status_code=exc.status_code,
            error_code=exc.error_code,
            reason=getattr(exc, "reason", None),
            error=exc.message,
        )
        return error_response(request, exc.status_code, exc.error_code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            ValidationErrorDetail(
                field=_field_name(err.get("loc", ())),
                message=err.get("msg", "Invalid value"),
                code=err.get("type", "value_error"),
            )
            for err in exc.errors()
        ]
        error = ValidationFailedError("Validation failed", details)
        return error_response(request, error.status_code, error.error_code, error.message, error.details)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_ERROR",
            "An unexpected error occurred",
        )
