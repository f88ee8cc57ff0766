"""
Middleware components for request processing.

Currently only request context (request ID, IP address, user agent).
"""

from app.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
