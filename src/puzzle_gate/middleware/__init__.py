"""HTTP middleware for the Puzzle Gate application."""

from .request_logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
