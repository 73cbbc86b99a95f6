"""Route class that records an ``api_access`` audit entry for every call."""

from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Request, Response
from fastapi.routing import APIRoute
from starlette.background import BackgroundTask, BackgroundTasks

from src.portal.core.audit_context import get_audit_context
from src.portal.core.exceptions import AppError
from src.portal.models import AuditAction, AuditStatus, User
from src.portal.services.audit_service import AuditService


def _status_for(status_code: int) -> AuditStatus:
    return AuditStatus.SUCCESS if status_code < 400 else AuditStatus.FAILURE


class AuditedRoute(APIRoute):
    """APIRoute that audits each request once the handler has produced a response.

    Typed application errors are audited with their status code before being
    re-raised to the exception handlers.

    Usage: ``APIRouter(route_class=AuditedRoute)``.
    """

    resource: str = "api"

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_handler = super().get_route_handler()

        async def audited_handler(request: Request) -> Response:
            audit = AuditService()
            try:
                response = await original_handler(request)
            except AppError as e:
                await audit.emit(**self._entry(request, e.status_code, e.detail))
                raise

            entry = {
                **self._entry(request, response.status_code),
                "context": get_audit_context(),
            }
            task = BackgroundTask(audit.log_action, **entry)
            if response.background is None:
                response.background = task
            elif isinstance(response.background, BackgroundTasks):
                response.background.add_task(audit.log_action, **entry)
            else:
                response.background = BackgroundTasks([response.background, task])
            return response

        return audited_handler

    def _entry(
        self, request: Request, status_code: int, error_message: str | None = None
    ) -> dict[str, Any]:
        user: User | None = getattr(request.state, "user", None)
        return {
            "action": AuditAction.API_ACCESS,
            "user_id": user.id if user else None,
            "user_email": user.email if user else None,
            "status": _status_for(status_code),
            "status_code": status_code,
            "resource": self.resource,
            "resource_id": request.path_params.get("session_id"),
            "details": {"route": self.path, "name": self.name},
            "error_message": error_message,
        }
