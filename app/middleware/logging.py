"""
Access logging middleware for the function controller.

Logs every request with its status and processing time.
"""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Request/response logging with timing."""

    SKIP_PATHS = ("/health",)

    def __init__(self, app, enable_detailed_logging: bool = False):
        super().__init__(app)
        self.enable_detailed_logging = enable_detailed_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        client_ip = request.client.host if request.client else None

        if self._should_log_request(request):
            logger.info(f"{request.method} {request.url.path} - {client_ip}")
        if self.enable_detailed_logging:
            logger.debug(
                f"Request details: query={dict(request.query_params)} "
                f"content_length={request.headers.get('content-length')}"
            )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"{request.method} {request.url.path} - ERROR - {process_time:.3f}s - {e}"
            )
            # Re-raise the exception for error handling middleware
            raise

        process_time = time.time() - start_time
        if self._should_log_request(request):
            logger.info(
                f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s"
            )
        response.headers["X-Process-Time"] = str(process_time)
        return response

    def _should_log_request(self, request: Request) -> bool:
        return request.url.path not in self.SKIP_PATHS
