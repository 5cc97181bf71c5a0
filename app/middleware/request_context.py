"""
Request context middleware.
Tags every request with a short id, rejects oversized bodies and logs timings.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import re
import time
import uuid

from app.services.error_handler import ErrorHandlerService
from app.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)

REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Assigns ``request.state.request_id`` and echoes it in ``X-Request-ID``.
    Error envelopes produced further down the stack reuse the same id.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 50 * 1024 * 1024,
        enable_request_logging: bool = False
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = self._request_id(request)
        request.state.request_id = request_id

        start_time = time.time()

        try:
            self._validate_request_size(request)
        except BadRequestError as exc:
            logger.warning(f"Rejected request [{request_id}]: {exc.detail}")
            response = ErrorHandlerService.handle_api_exception(exc, request)
            response.headers["X-Request-ID"] = request_id
            return response

        if self.enable_request_logging:
            logger.info(f"Request [{request_id}]: {request.method} {request.url.path}")

        response = await call_next(request)

        processing_time = time.time() - start_time
        if self.enable_request_logging:
            logger.info(
                f"Response [{request_id}]: {response.status_code} - {processing_time:.3f}s",
                extra={
                    "request_id": request_id,
                    "status_code": response.status_code,
                    "path": request.url.path,
                    "method": request.method
                }
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response

    @staticmethod
    def _request_id(request: Request) -> str:
        """Incoming X-Request-ID when it is short and plain, otherwise a fresh 8-character id."""
        incoming = request.headers.get("x-request-id")
        if incoming and REQUEST_ID_PATTERN.match(incoming):
            return incoming
        if incoming:
            logger.debug("Ignoring malformed X-Request-ID header")
        return str(uuid.uuid4())[:8]

    def _validate_request_size(self, request: Request) -> None:
        content_length = request.headers.get("content-length")
        if not content_length:
            return
        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")
        if size > self.max_request_size:
            raise BadRequestError(
                f"Request size {size} bytes exceeds maximum allowed size {self.max_request_size} bytes"
            )
