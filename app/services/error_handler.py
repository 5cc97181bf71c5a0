"""
Error response formatting and logging.

Two shapes leave the API:
- the error envelope `{"error": {code, message, timestamp, request_id, details?}}`
  for read endpoints, dependency failures and request validation
- the action result `{"success": false, "error": "<message>", ...}` for
  mutating endpoints
"""

from typing import Dict, Any, Optional, List
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from pydantic import ValidationError as PydanticValidationError
from app.utils.exceptions import APIException, ValidationError
from datetime import datetime, timezone
import logging
import traceback
import uuid

logger = logging.getLogger(__name__)

# Substring of the driver message -> public description
CONSTRAINT_MESSAGES = (
    ("unique", "Duplicate value for unique field"),
    ("foreign key", "Referenced record does not exist"),
    ("not null", "Required field cannot be empty"),
    ("check constraint", "Value does not meet validation requirements"),
)


class ErrorHandlerService:
    """Builds error envelopes and action results with matching log lines."""

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the error envelope body.

        Args:
            error_code: Machine-readable code, e.g. NOT_FOUND
            message: Human-readable error message
            details: Optional per-field errors
            request_id: Request identifier echoed from X-Request-ID

        Returns:
            Envelope dictionary; `details` and `request_id` only when given
        """
        error: Dict[str, Any] = {
            "code": error_code,
            "message": message,
            "timestamp": ErrorHandlerService._get_current_timestamp(),
        }
        if details:
            error["details"] = details
        if request_id:
            error["request_id"] = request_id
        return {"error": error}

    @staticmethod
    def action_success(**payload: Any) -> Dict[str, Any]:
        return {"success": True, **payload}

    @staticmethod
    def action_error_response(exception: APIException, action: Optional[str] = None) -> JSONResponse:
        """
        Turn an exception raised inside an action into a failed action result.

        The HTTP status and headers (Retry-After, WWW-Authenticate) come from
        the exception; exception-specific keys come from `action_fields()`.
        """
        label = f" [{action}]" if action else ""
        logger.warning(f"Action failed{label}: {exception.error_code} - {exception.detail}")

        content = {"success": False, "error": exception.detail, **exception.action_fields()}
        return JSONResponse(status_code=exception.status_code, content=content, headers=exception.headers)

    @staticmethod
    def _envelope_response(
        status_code: int,
        error_code: str,
        message: str,
        request_id: str,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=ErrorHandlerService.format_error_response(error_code, message, details, request_id),
            headers=headers
        )

    @staticmethod
    def handle_api_exception(exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService._get_request_id(request)
        logger.warning(
            f"API Exception [{request_id}]: {exception.error_code} - {exception.detail}",
            extra={
                "error_code": exception.error_code,
                "status_code": exception.status_code,
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )

        details = exception.field_errors if isinstance(exception, ValidationError) else None
        return ErrorHandlerService._envelope_response(
            exception.status_code,
            exception.error_code or "API_ERROR",
            exception.detail,
            request_id,
            details=details,
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(
        exception: PydanticValidationError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Report request-body and query validation failures, one detail per field.

        Field paths are joined with " -> ", e.g. "body -> email".
        """
        request_id = ErrorHandlerService._get_request_id(request)

        details = [
            {
                "field": " -> ".join(str(part) for part in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exception.errors()
        ]

        logger.warning(
            f"Validation Error [{request_id}]: {len(details)} field errors",
            extra={"request_id": request_id, "path": request.url.path if request else None}
        )

        return ErrorHandlerService._envelope_response(
            422, "VALIDATION_ERROR", "Request validation failed", request_id, details=details
        )

    @staticmethod
    def handle_database_error(exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        """
        Map database failures to 409 (integrity) or 500.

        Driver messages are logged but never returned to the client.
        """
        request_id = ErrorHandlerService._get_request_id(request)

        if isinstance(exception, IntegrityError):
            status_code, error_code = 409, "INTEGRITY_ERROR"
            constraint = ErrorHandlerService._extract_constraint_info(exception)
            message = f"Constraint violation: {constraint}" if constraint else "Data integrity constraint violation"
        else:
            status_code, error_code = 500, "DATABASE_ERROR"
            message = "Database operation failed"

        logger.error(
            f"Database Error [{request_id}]: {error_code} - {exception}",
            extra={
                "request_id": request_id,
                "path": request.url.path if request else None,
                "exception_type": type(exception).__name__
            },
            exc_info=True
        )

        return ErrorHandlerService._envelope_response(status_code, error_code, message, request_id)

    @staticmethod
    def handle_http_exception(exception: HTTPException, request: Optional[Request] = None) -> JSONResponse:
        """Starlette/FastAPI HTTP errors such as unknown routes (HTTP_404)."""
        request_id = ErrorHandlerService._get_request_id(request)
        logger.warning(f"HTTP Exception [{request_id}]: {exception.status_code} - {exception.detail}")

        return ErrorHandlerService._envelope_response(
            exception.status_code,
            f"HTTP_{exception.status_code}",
            str(exception.detail),
            request_id,
            headers=getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService._get_request_id(request)
        logger.error(
            f"Unexpected Error [{request_id}]: {type(exception).__name__} - {exception}",
            extra={
                "request_id": request_id,
                "path": request.url.path if request else None,
                "traceback": traceback.format_exc()
            },
            exc_info=True
        )

        return ErrorHandlerService._envelope_response(
            500,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred. Please try again later.",
            request_id
        )

    @staticmethod
    def _get_request_id(request: Optional[Request]) -> str:
        """Reuse the middleware request id when present, otherwise generate one."""
        if request is not None:
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                return request_id
        return ErrorHandlerService._generate_request_id()

    @staticmethod
    def _generate_request_id() -> str:
        return uuid.uuid4().hex[:8]

    @staticmethod
    def _get_current_timestamp() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")

    @staticmethod
    def _extract_constraint_info(exception: IntegrityError) -> Optional[str]:
        error_msg = str(exception.orig).lower()
        for needle, description in CONSTRAINT_MESSAGES:
            if needle in error_msg:
                return description
        return None
