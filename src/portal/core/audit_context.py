"""Request metadata captured for audit logging, stored in a contextvar.

The request context middleware sets it once per request; services read it when
they emit audit entries so they never need the ``Request`` object.
"""

from contextvars import ContextVar
from dataclasses import dataclass

from starlette.requests import Request

from src.portal.core.config import get_settings

_audit_context: ContextVar["AuditContext | None"] = ContextVar("audit_context", default=None)

MAX_USER_AGENT_LENGTH = 500


@dataclass(frozen=True)
class AuditContext:
    """Immutable audit context for the current request."""

    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = None
    method: str | None = None
    endpoint: str | None = None


def set_audit_context(
    ip_address: str | None = None,
    user_agent: str | None = None,
    request_id: str | None = None,
    method: str | None = None,
    endpoint: str | None = None,
) -> None:
    """Set audit context for the current request."""
    ctx = AuditContext(
        ip_address=ip_address,
        user_agent=user_agent[:MAX_USER_AGENT_LENGTH] if user_agent else user_agent,
        request_id=request_id,
        method=method,
        endpoint=endpoint,
    )
    _audit_context.set(ctx)


def get_audit_context() -> AuditContext | None:
    """Get the current audit context."""
    return _audit_context.get()


def clear_audit_context() -> None:
    """Clear the audit context."""
    _audit_context.set(None)


def get_client_ip(forwarded_for: str | None, client_host: str | None) -> str | None:
    """Resolve the client IP.

    X-Forwarded-For is only honoured when the direct peer is a configured
    trusted proxy; otherwise any client could spoof its address.

    Args:
        forwarded_for: Value of X-Forwarded-For header (may contain multiple IPs)
        client_host: Direct client host from the connection

    Returns:
        The first forwarded IP when the peer is trusted, else the peer address
    """
    trusted = get_settings().trusted_proxy_ips
    if forwarded_for and client_host in trusted:
        # First IP is the original client
        return forwarded_for.split(",")[0].strip()
    return client_host


def get_request_ip(request: Request) -> str | None:
    """Client IP of a request, resolved with :func:`get_client_ip`."""
    client_host = request.client.host if request.client else None
    return get_client_ip(request.headers.get("x-forwarded-for"), client_host)
