"""
Custom exception classes for the marketplace API.

Each class fixes its HTTP status and machine-readable code. Read endpoints
render them through the global error envelope; actions turn them into
`{"success": false, "error": ...}` results, adding `action_fields()`.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    default_status = status.HTTP_400_BAD_REQUEST
    default_code: Optional[str] = None
    default_detail = "Request failed"

    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status_code or self.default_status,
            detail=detail or self.default_detail,
            headers=headers
        )
        self.error_code = error_code or self.default_code

    def action_fields(self) -> Dict[str, Any]:
        """Extra keys merged into a failed action result."""
        return {}


class ValidationError(APIException):
    default_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = "VALIDATION_ERROR"
    default_detail = "Invalid data"

    def __init__(self, detail: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(detail)
        self.field_errors = field_errors or []

    def action_fields(self) -> Dict[str, Any]:
        return {"field_errors": self.field_errors} if self.field_errors else {}


class NotFoundError(APIException):
    """
    A resource does not exist.

    The default message names the resource ("Property not found"); listing
    and scheduling code passes a localized `detail` instead.
    """

    default_status = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[str] = None, detail: Optional[str] = None):
        if detail is None:
            detail = f"{resource} not found"
            if resource_id:
                detail = f"{detail} with ID: {resource_id}"
        super().__init__(detail)
        self.resource = resource


class UnauthorizedError(APIException):
    default_status = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"
    default_detail = "Authentication required"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(APIException):
    default_status = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"
    default_detail = "Access forbidden"


class ConflictError(APIException):
    default_status = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"
    default_detail = "Resource conflict"


class BadRequestError(APIException):
    default_code = "BAD_REQUEST"


# Authentication
class InvalidCredentialsError(UnauthorizedError):
    default_detail = "Invalid email or password"


class TokenExpiredError(UnauthorizedError):
    default_detail = "Token has expired"


class InvalidTokenError(UnauthorizedError):
    default_detail = "Invalid token"


class InactiveUserError(ForbiddenError):
    default_detail = "User account is inactive"


class InsufficientPermissionsError(ForbiddenError):
    """The current role may not perform `action`, e.g. "create properties"."""

    def __init__(self, action: str):
        super().__init__(f"Insufficient permissions to {action}")


class DuplicateResourceError(ConflictError):
    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")


# Subscriptions
class TierLimitExceededError(ForbiddenError):
    """
    A subscription tier limit blocks the operation.

    Failed actions carry `upgrade_required` and the limit so clients can
    offer an upgrade.
    """

    default_code = "TIER_LIMIT_EXCEEDED"

    def __init__(self, detail: str, limit: Optional[int] = None):
        super().__init__(detail)
        self.limit = limit

    def action_fields(self) -> Dict[str, Any]:
        return {"upgrade_required": True, "current_limit": self.limit}


# Scheduling
class AppointmentUnavailableError(BadRequestError):
    default_detail = "This time slot is no longer available. Please choose another time."


# Uploads
class FileUploadError(BadRequestError):
    def __init__(self, detail: str):
        super().__init__(f"File upload error: {detail}")


class UnsupportedFileTypeError(BadRequestError):
    def __init__(self, file_type: str, supported_types: List[str]):
        super().__init__(f"Unsupported file type '{file_type}'. Supported types: {', '.join(supported_types)}")


class FileSizeExceededError(BadRequestError):
    def __init__(self, size: int, max_size: int):
        super().__init__(f"File size {size} bytes exceeds maximum allowed size {max_size} bytes")


class RateLimitExceededError(APIException):
    """A named rate-limit bucket is exhausted for this user or IP."""

    default_status = status.HTTP_429_TOO_MANY_REQUESTS
    default_code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, retry_after: int):
        super().__init__(
            f"Too many requests. Please try again in {retry_after} seconds.",
            headers={"Retry-After": str(retry_after)}
        )
        self.retry_after = retry_after


class ServiceUnavailableError(APIException):
    """An outside collaborator (completion API, storage) cannot serve the request."""

    default_status = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "SERVICE_UNAVAILABLE"
    default_detail = "Service temporarily unavailable"
