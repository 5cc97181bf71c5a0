"""
Error response schemas for API documentation and consistent error formatting.
Read endpoints fail with the `{"error": {...}}` envelope; actions fail with
`{"success": false, "error": "..."}`.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict

from app.schemas.common import ActionResult


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["email"])
    message: str = Field(..., description="Human-readable error message", examples=["Invalid email format"])
    type: Optional[str] = Field(None, description="Error type identifier", examples=["value_error"])
    input: Optional[Any] = Field(None, description="Input value that caused the error")
    rule: Optional[str] = Field(None, description="Business rule that was violated", examples=["unique_email"])


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    code: str = Field(..., description="Error code identifier", examples=["VALIDATION_ERROR"])
    message: str = Field(..., description="Human-readable error message")
    timestamp: str = Field(..., description="Error timestamp in ISO format")
    request_id: Optional[str] = Field(None, description="Unique request identifier for tracking")
    details: Optional[List[ErrorDetail]] = Field(None, description="Detailed error information")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    error: ErrorResponse = Field(..., description="Error information")


class ActionErrorResponse(BaseModel):
    """Failed action result."""

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Error message", examples=["Has alcanzado el límite de 1 propiedad. Actualiza tu plan para publicar más."])
    upgrade_required: Optional[bool] = Field(None, description="Set when a plan limit blocked the action")
    current_limit: Optional[int] = Field(None, description="Limit of the current plan")
    field_errors: Optional[Dict[str, List[str]]] = Field(None, description="Per-field validation messages")


def _envelope(code: str, message: str) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "timestamp": "2026-01-01T00:00:00Z",
            "request_id": "abc12345"
        }
    }


COMMON_ERROR_RESPONSES = {
    400: {
        "description": "Bad Request - Invalid request parameters",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _envelope("BAD_REQUEST", "Invalid request parameters")}}
    },
    401: {
        "description": "Unauthorized - Authentication required",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _envelope("UNAUTHORIZED", "Authentication token required")}}
    },
    403: {
        "description": "Forbidden - Access denied or plan limit reached",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _envelope("FORBIDDEN", "Insufficient permissions to access admin resources")}}
    },
    404: {
        "description": "Not Found - Resource not found",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _envelope("NOT_FOUND", "Property not found")}}
    },
    409: {
        "description": "Conflict - Resource conflict",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _envelope("CONFLICT", "User with email 'maria@example.com' already exists")}}
    },
    422: {
        "description": "Unprocessable Entity - Validation error",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _envelope("VALIDATION_ERROR", "Request validation failed")}}
    },
    429: {
        "description": "Too Many Requests - Rate limit exceeded",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _envelope("RATE_LIMIT_EXCEEDED", "Too many requests. Please try again in 60 seconds.")}}
    },
    500: {
        "description": "Internal Server Error - Unexpected error",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _envelope("INTERNAL_SERVER_ERROR", "An unexpected error occurred. Please try again later.")}}
    },
    503: {
        "description": "Service Unavailable - Service temporarily unavailable",
        "model": APIErrorResponse,
        "content": {"application/json": {"example": _envelope("SERVICE_UNAVAILABLE", "AI features are not configured")}}
    }
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Get error response schemas for specific status codes.

    Args:
        status_codes: HTTP status codes to include

    Returns:
        Dictionary of error response schemas
    """
    return {
        code: COMMON_ERROR_RESPONSES[code]
        for code in status_codes
        if code in COMMON_ERROR_RESPONSES
    }


def get_action_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """Error responses of action endpoints, documented with the action envelope."""
    return {
        code: {"description": COMMON_ERROR_RESPONSES[code]["description"], "model": ActionErrorResponse}
        for code in status_codes
        if code in COMMON_ERROR_RESPONSES
    }


def get_action_responses(success_code: int, *error_codes: int) -> Dict[int, Dict[str, Any]]:
    """Success and failure documentation of an action endpoint."""
    return {
        success_code: {"description": "Action result", "model": ActionResult},
        **get_action_error_responses(*error_codes)
    }


def get_auth_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get authentication and authorization error response schemas."""
    return get_error_responses(401, 403)


def get_common_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get common error response schemas for most endpoints."""
    return get_error_responses(400, 401, 403, 404, 422, 500)


def get_crud_error_responses(success_code: int = 200) -> Dict[int, Dict[str, Any]]:
    """Get response schemas for CRUD actions."""
    return get_action_responses(success_code, 400, 401, 403, 404, 409, 422, 429, 500)
