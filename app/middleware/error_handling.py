"""
Error handling middleware for the function controller.

Turns controller errors into their HTTP status with a JSON body, and any
other exception into a logged 500, so no request can take the process down.
"""

import logging
import traceback
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.domain.exceptions import FaasError
from app.schemas.errors import ErrorResponse

logger = logging.getLogger(__name__)


def error_payload(exc: FaasError) -> ErrorResponse:
    return ErrorResponse(
        success=False,
        error=exc.detail,
        error_code=exc.error_code,
        details=exc.details or None,
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for centralized error handling.

    Controller errors keep their own status code and error code; anything
    unexpected becomes INTERNAL_ERROR.
    """

    def __init__(self, app, enable_error_logging: bool = True):
        """
        Initialize the error handling middleware.

        Args:
            app: FastAPI application instance
            enable_error_logging: Whether to log full tracebacks for unexpected errors
        """
        super().__init__(app)
        self.enable_error_logging = enable_error_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except FaasError as e:
            return self._handle_faas_error(request, e)

        except Exception as e:
            return self._handle_unexpected_exception(request, e)

    def _handle_faas_error(self, request: Request, exc: FaasError) -> JSONResponse:
        logger.warning(
            f"HTTP {exc.status_code} {exc.error_code} for {request.method} {request.url.path}: {exc.detail}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(exc).model_dump(),
        )

    def _handle_unexpected_exception(self, request: Request, exc: Exception) -> JSONResponse:
        """
        Handle unexpected exceptions with proper logging and response formatting.

        Args:
            request: HTTP request
            exc: Exception

        Returns:
            JSON error response
        """
        logger.error(f"Unexpected error for {request.method} {request.url.path}: {exc}")

        if self.enable_error_logging:
            logger.error(f"Full traceback:\n{traceback.format_exc()}")

        error_response = ErrorResponse(
            success=False,
            error="Internal server error",
            error_code="INTERNAL_ERROR",
            details={
                "path": str(request.url.path),
                "method": request.method,
                "error_type": type(exc).__name__,
            },
        )
        return JSONResponse(status_code=500, content=error_response.model_dump())
