"""
Domain exceptions raised by the service layer.

Routes translate these into HTTP responses:
- ValidationError, CapacityExceededError -> 400
- AuthError -> 401
- PermissionDeniedError -> 403
- NotFoundError -> 404
"""


class CivicSenseError(Exception):
    """Base class for service-level errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CivicSenseError, ValueError):
    status_code = 400


class CapacityExceededError(ValidationError):
    """Raised when a team has no room for the requested assignments."""


class NotFoundError(CivicSenseError, LookupError):
    status_code = 404


class AuthError(CivicSenseError):
    status_code = 401


class PermissionDeniedError(CivicSenseError):
    status_code = 403
