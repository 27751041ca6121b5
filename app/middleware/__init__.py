"""
Middleware package for the function controller.

Cross-cutting concerns: access logging and error rendering.
"""

from .error_handling import ErrorHandlingMiddleware
from .logging import LoggingMiddleware

__all__ = [
    "ErrorHandlingMiddleware",
    "LoggingMiddleware",
]
