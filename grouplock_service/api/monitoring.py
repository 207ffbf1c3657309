from fastapi import APIRouter, Request

from ..errors import InvalidRequestError
from ..models.monitoring import StartMonitoringRequest, StopMonitoringRequest
from .deps import get_monitors, require_fields, require_handle, require_session

router = APIRouter(prefix="/api")


@router.post("/start-monitoring")
async def start_monitoring(request: Request, body: StartMonitoringRequest):
    require_fields(sessionId=body.session_id, groupId=body.group_id)
    if not body.lock_nickname and not body.lock_group_name:
        raise InvalidRequestError("At least one of lockNickname or lockGroupName is required")
    await require_handle(request, body.session_id)

    get_monitors(request).start(
        body.session_id,
        body.group_id,
        lock_nickname=body.lock_nickname,
        lock_group_name=body.lock_group_name,
    )
    return {
        "success": True,
        "message": "Monitoring started",
        "monitoring": True,
        "lockNickname": body.lock_nickname,
        "lockGroupName": body.lock_group_name,
    }


@router.post("/stop-monitoring")
async def stop_monitoring(request: Request, body: StopMonitoringRequest):
    require_fields(sessionId=body.session_id, groupId=body.group_id)
    await require_session(request, body.session_id)

    get_monitors(request).stop(body.session_id, body.group_id)
    return {"success": True, "message": "Monitoring stopped", "monitoring": False}


@router.get("/monitoring-status/{session_id}/{group_id}")
async def monitoring_status(request: Request, session_id: str, group_id: str):
    await require_session(request, session_id)
    return get_monitors(request).status(session_id, group_id)
