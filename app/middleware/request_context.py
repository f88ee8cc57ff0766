"""
RequestContext Middleware - Adds request tracking to all requests.

Every request gets:
- request_id: taken from an incoming X-Request-ID header or generated
- ip_address: Client IP address
- user_agent: Client user agent string

These are stored in request.state and bound to the structlog context so
every log line written while handling the request carries the request id.
"""

import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Add request context to all incoming requests.

    Also echoes X-Request-ID on the response for client-side tracing.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        ip_address = self._extract_client_ip(request)
        request.state.ip_address = ip_address

        user_agent = request.headers.get("user-agent")
        request.state.user_agent = user_agent

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.debug(
            "Request started",
            method=request.method,
            path=request.url.path,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _extract_client_ip(self, request: Request) -> str | None:
        """
        Client IP, honouring X-Forwarded-For only from a trusted proxy.

        Args:
            request: FastAPI Request

        Returns:
            Client IP address or None
        """
        if not settings.TRUST_X_FORWARDED_FOR:
            return request.client.host if request.client else None

        if request.client and request.client.host in settings.TRUSTED_PROXY_IPS:
            forwarded_for = request.headers.get("x-forwarded-for")
            if forwarded_for:
                # "client, proxy1, proxy2"
                return forwarded_for.split(",")[0].strip()

        return request.client.host if request.client else None
