from datetime import datetime, timezone

from fastapi import APIRouter, Request

from .deps import get_registry

router = APIRouter()


@router.get("/api/health")
async def health(request: Request):
    return {
        "status": "OK",
        "activeConnections": get_registry(request).size(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
