from fastapi import APIRouter

from .health import router as health_router
from .sessions import router as sessions_router
from .groups import router as groups_router
from .monitoring import router as monitoring_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(sessions_router, tags=["sessions"])
api_router.include_router(groups_router, tags=["groups"])
api_router.include_router(monitoring_router, tags=["monitoring"])
