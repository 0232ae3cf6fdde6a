"""
RequestContext Middleware - tags every request with an id and client address.

Adds to request.state:
- request_id: UUID for tracing this request (echoed as X-Request-ID)
- ip_address: Client IP address
- user_agent: Client user agent string

Webhook callers can correlate retries with server logs through X-Request-ID.
"""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.ip_address = self._extract_client_ip(request)
        request.state.user_agent = request.headers.get("user-agent")

        logger.debug(
            "Request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            ip_address=request.state.ip_address,
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    def _extract_client_ip(self, request: Request) -> str | None:
        """
        Client IP, honouring X-Forwarded-For only from trusted proxies.

        Requires TRUST_X_FORWARDED_FOR and a direct peer listed in
        TRUSTED_PROXY_IPS; otherwise the socket peer address is used.
        """
        direct = request.client.host if request.client else None
        if not settings.TRUST_X_FORWARDED_FOR or direct not in settings.TRUSTED_PROXY_IPS:
            return direct

        forwarded_for = request.headers.get("x-forwarded-for")
        if not forwarded_for:
            return direct

        # "client, proxy1, proxy2": first entry is the original client
        return forwarded_for.split(",")[0].strip()
