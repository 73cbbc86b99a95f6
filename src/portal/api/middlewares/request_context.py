"""Request context middleware - captures request metadata for audit logging."""

from asgi_correlation_id import correlation_id
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.portal.core.audit_context import clear_audit_context, get_request_ip, set_audit_context


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Set the AuditContext (IP, user agent, request id, method, path) per request.

    Context is always cleared after the request.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        clear_audit_context()

        try:
            set_audit_context(
                ip_address=get_request_ip(request),
                user_agent=request.headers.get("user-agent"),
                request_id=correlation_id.get(),
                method=request.method,
                endpoint=request.url.path,
            )

            return await call_next(request)
        finally:
            clear_audit_context()
