import asyncio
import importlib
import inspect
import logging
from functools import partial
from typing import Any, Callable, Optional, Protocol

from ..errors import AuthError
from .threads import Thread, ThreadInfo

logger = logging.getLogger(__name__)


class MessengerClient(Protocol):
    """Capability interface the service needs from an authenticated handle."""

    async def get_thread_list(self, limit: int, cursor: Optional[str], tags: list[str]) -> list[Thread]: ...

    async def get_thread_info(self, group_id: str) -> ThreadInfo: ...

    async def set_title(self, name: str, group_id: str) -> None: ...

    async def change_nickname(self, nickname: str, group_id: str, user_id: str) -> None: ...

    async def logout(self) -> None: ...


def load_login(path: str) -> Callable[..., Any]:
    """Resolve a ``package.module:callable`` import path to the login callable."""
    module_name, _, attr = path.partition(":")
    module = importlib.import_module(module_name)
    target = module
    for part in attr.split("."):
        target = getattr(target, part)
    if not callable(target):
        raise TypeError(f"{path!r} does not point to a callable")
    return target


async def _invoke(func: Callable[..., Any], *args):
    """Await coroutine functions, run blocking ones in the default executor."""
    if inspect.iscoroutinefunction(func):
        return await func(*args)
    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(None, partial(func, *args))
    if inspect.isawaitable(result):
        return await result
    return result


def _upstream_detail(exc: BaseException) -> Optional[str]:
    detail = getattr(exc, "error", None)
    if isinstance(detail, str) and detail:
        return detail
    return str(exc) or None


async def authenticate(login: Callable[..., Any], app_state: list, timeout: float) -> "BoundedClient":
    """Log in with ``app_state`` and wrap the resulting handle.

    Every failure of the login callable surfaces as :class:`AuthError`,
    carrying the upstream message when one is available.
    """
    try:
        handle = await asyncio.wait_for(_invoke(login, app_state), timeout=timeout)
    except AuthError:
        raise
    except asyncio.TimeoutError as e:
        raise AuthError("Login timed out") from e
    except Exception as e:
        logger.error("Login failed: %s", e)
        raise AuthError(_upstream_detail(e)) from e
    if handle is None:
        raise AuthError()
    return BoundedClient(handle, timeout)


class BoundedClient:
    """Async view over a platform handle with a timeout on every call.

    The wrapped handle may expose coroutine methods or plain blocking ones;
    blocking methods are pushed to the default thread pool so the event loop
    is never stalled by platform I/O.
    """

    def __init__(self, handle: Any, timeout: float):
        self.handle = handle
        self.timeout = timeout

    async def _call(self, name: str, *args):
        method = getattr(self.handle, name)
        return await asyncio.wait_for(_invoke(method, *args), timeout=self.timeout)

    async def get_thread_list(self, limit: int, cursor: Optional[str], tags: list[str]) -> list[Thread]:
        threads = await self._call("get_thread_list", limit, cursor, tags)
        return [Thread.from_raw(t) for t in threads or []]

    async def get_thread_info(self, group_id: str) -> ThreadInfo:
        info = await self._call("get_thread_info", group_id)
        return ThreadInfo.from_raw(info, thread_id=group_id)

    async def set_title(self, name: str, group_id: str) -> None:
        await self._call("set_title", name, group_id)

    async def change_nickname(self, nickname: str, group_id: str, user_id: str) -> None:
        await self._call("change_nickname", nickname, group_id, user_id)

    async def logout(self) -> None:
        await self._call("logout")
