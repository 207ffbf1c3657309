from fastapi import Request

from ..errors import InvalidRequestError, SessionNotFoundError
from ..services import BatchMutationOrchestrator, GroupMonitorManager, SessionRegistry


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_orchestrator(request: Request) -> BatchMutationOrchestrator:
    return request.app.state.orchestrator


def get_monitors(request: Request) -> GroupMonitorManager:
    return request.app.state.monitors


async def require_handle(request: Request, session_id: str):
    """Resolve a live session handle or fail with 401."""
    handle = await get_registry(request).get(session_id)
    if handle is None:
        raise SessionNotFoundError()
    return handle


def require_fields(**fields) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise InvalidRequestError(f"Missing required fields: {', '.join(fields)}")


async def require_session(request: Request, session_id: str):
    """Like ``require_handle`` but leaves ``last_used_at`` alone."""
    session = await get_registry(request).peek(session_id)
    if session is None:
        raise SessionNotFoundError()
    return session
