from fastapi import APIRouter

from src.portal.api.v1 import audit, auth, sessions

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(sessions.router)
api_router.include_router(audit.router)
