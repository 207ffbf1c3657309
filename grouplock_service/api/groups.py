import asyncio
import contextlib
import logging

from fastapi import APIRouter, Request

from ..errors import InvalidRequestError, UpstreamError
from ..models.groups import ChangeAllRequest, ChangeAllResponse, GroupSummary, NicknameChanges
from .deps import get_orchestrator, require_fields, require_handle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

DISCONNECT_POLL_SECONDS = 0.5


async def _watch_disconnect(request: Request, stop: asyncio.Event) -> None:
    while not stop.is_set():
        try:
            disconnected = await request.is_disconnected()
        except RuntimeError as e:
            logger.debug("Disconnect watch ended: %s", e)
            return
        if disconnected:
            logger.info("Client went away, stopping batch run")
            stop.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@router.get("/groups/{session_id}")
async def list_groups(request: Request, session_id: str):
    handle = await require_handle(request, session_id)
    limit = request.app.state.settings.thread_list_limit
    try:
        threads = await handle.get_thread_list(limit, None, ["INBOX"])
    except Exception as e:
        logger.error("Failed to fetch groups for session %s: %s", session_id, e)
        raise UpstreamError("Failed to fetch groups") from e

    groups = [
        GroupSummary(id=t.thread_id, name=t.name, member_count=len(t.participant_ids))
        for t in threads
        if t.is_group and t.name
    ]
    return {"groups": [g.model_dump(by_alias=True) for g in groups]}


@router.post("/change-all")
async def change_all(request: Request, body: ChangeAllRequest):
    require_fields(sessionId=body.session_id, groupId=body.group_id)
    if not body.nickname and not body.group_name:
        raise InvalidRequestError("At least one of nickname or groupName is required")

    handle = await require_handle(request, body.session_id)
    orchestrator = get_orchestrator(request)

    stop = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, stop))
    try:
        async with orchestrator.locks.hold((body.session_id, body.group_id)):
            result = await orchestrator.apply(
                handle,
                body.group_id,
                new_group_name=body.group_name or None,
                new_nickname=body.nickname or None,
                stop=stop,
            )
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher

    if body.nickname:
        message = "Changes applied successfully"
    else:
        message = "Group name changed successfully"
    if result.cancelled:
        message = "Changes stopped before completion"

    response = ChangeAllResponse(
        message=message,
        nickname_changes=NicknameChanges(
            success=result.nickname_success_count,
            failed=result.nickname_failure_count,
        ),
        group_name_changed=result.group_name_changed,
        cancelled=result.cancelled,
    )
    return response.model_dump(by_alias=True)
