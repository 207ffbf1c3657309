import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Request
from starlette.datastructures import UploadFile

from ..errors import ClientUnavailableError, InvalidRequestError, SessionNotFoundError
from ..messenger import authenticate
from ..models.sessions import LoginRequest
from .deps import get_monitors, get_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def validate_app_state(app_state: Any) -> list:
    """Decode ``app_state`` into a non-empty list or reject it."""
    if isinstance(app_state, (str, bytes)):
        try:
            app_state = json.loads(app_state)
        except ValueError:
            raise InvalidRequestError("Invalid appState format")
    if not isinstance(app_state, list) or not app_state:
        raise InvalidRequestError("Invalid appState format")
    return app_state


async def _read_app_state(request: Request, max_bytes: int) -> Optional[Any]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("appstate")
        if isinstance(upload, UploadFile):
            data = await upload.read(max_bytes + 1)
            await upload.close()
            if len(data) > max_bytes:
                raise InvalidRequestError("appState file too large")
            try:
                return data.decode("utf-8")
            except UnicodeDecodeError:
                raise InvalidRequestError("Invalid appState format")
        return form.get("appState") or upload

    body = await request.body()
    if not body:
        return None
    try:
        payload = json.loads(body)
    except ValueError:
        raise InvalidRequestError("Invalid request body")
    if not isinstance(payload, dict):
        return None
    return LoginRequest.model_validate(payload).app_state


@router.post("/login")
async def login(request: Request):
    settings = request.app.state.settings
    raw = await _read_app_state(request, settings.appstate_max_bytes)
    if raw is None or raw == "":
        raise InvalidRequestError("No appState provided")
    app_state = validate_app_state(raw)

    login_fn = request.app.state.messenger_login
    if login_fn is None:
        raise ClientUnavailableError()

    client = await authenticate(login_fn, app_state, settings.client_call_timeout_seconds)
    session_id = await get_registry(request).create(client)
    return {"success": True, "sessionId": session_id, "message": "Logged in successfully"}


@router.get("/session/{session_id}/status")
async def session_status(request: Request, session_id: str):
    session = await get_registry(request).peek(session_id)
    if session is None:
        raise SessionNotFoundError()
    return {
        "active": True,
        "createdAt": int(session.created_at * 1000),
        "lastUsed": int(session.last_used_at * 1000),
    }


@router.post("/logout/{session_id}")
async def logout(request: Request, session_id: str):
    stopped = get_monitors(request).stop_session(session_id)
    if stopped:
        logger.info("Stopped %d monitor(s) for session %s", stopped, session_id)
    await get_registry(request).remove(session_id)
    return {"message": "Logged out successfully"}
