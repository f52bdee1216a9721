"""
core/errors.py
--------------
Service-layer exception hierarchy.

Services raise these; the exception handlers in api/errors.py render them
into the ErrorResponse envelope. Each class carries its HTTP status and a
stable error code so the route layer never has to map them by hand.
"""

from typing import Any, List, Optional


class AuthServiceError(Exception):
    status_code: int = 400
    error_code: str = "BAD_REQUEST"

    def __init__(self, message: str, details: Optional[List[Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailedError(AuthServiceError):
    status_code = 400
    error_code = "VALIDATION_ERROR"


class UnauthorizedError(AuthServiceError):
    """Bad credentials. The message never says which field was wrong."""

    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class TokenExpiredError(AuthServiceError):
    status_code = 401
    error_code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthServiceError):
    status_code = 401
    error_code = "INVALID_TOKEN"

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class AccessDeniedError(AuthServiceError):
    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason
        if reason == "NO_TOKEN":
            # Missing credentials is an authentication problem, not a forbidden one
            self.status_code = 401
            self.error_code = "UNAUTHORIZED"


class NotFoundError(AuthServiceError):
    status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(AuthServiceError):
    status_code = 409
    error_code = "CONFLICT"


class ConfigurationError(AuthServiceError):
    """Provisioning bug (e.g. no default tenant). Never a user error."""

    status_code = 500
    error_code = "INTERNAL_ERROR"


class StoreUnavailableError(AuthServiceError):
    status_code = 503
    error_code = "UNAVAILABLE"
