import asyncio
import contextlib
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class Session:
    id: str
    handle: Any
    created_at: float
    last_used_at: float


class SessionRegistry:
    """In-memory store of authenticated platform handles keyed by session id.

    Idle time is measured from ``last_used_at``. Expired sessions are removed
    by a recurring sweep task and, lazily, by :meth:`get`. Every removal logs
    the handle out on a best-effort basis.
    """

    def __init__(
        self,
        idle_timeout: float = 1800.0,
        sweep_interval: float = 300.0,
        clock: Callable[[], float] = time.time,
    ):
        self.idle_timeout = idle_timeout
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()
        self._sweep_task: Optional[asyncio.Task] = None

    def _new_id(self) -> str:
        while True:
            session_id = secrets.token_urlsafe(24)
            if session_id not in self._sessions:
                return session_id

    def _is_idle(self, session: Session, now: float) -> bool:
        return now - session.last_used_at > self.idle_timeout

    async def create(self, handle: Any) -> str:
        """Store ``handle`` under a fresh session id and return the id."""
        async with self._lock:
            session_id = self._new_id()
            now = self._clock()
            self._sessions[session_id] = Session(session_id, handle, now, now)
        logger.info("Session %s created (%d active)", session_id, len(self._sessions))
        return session_id

    async def get(self, session_id: str) -> Optional[Any]:
        """Return the handle for ``session_id`` and mark it used, or None."""
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            now = self._clock()
            if not self._is_idle(session, now):
                session.last_used_at = now
                return session.handle
            self._sessions.pop(session_id, None)
        logger.info("Session %s expired on access", session_id)
        await self._logout(session)
        return None

    async def peek(self, session_id: str) -> Optional[Session]:
        """Return the session record without refreshing ``last_used_at``."""
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None or self._is_idle(session, self._clock()):
                return None
            return session

    async def remove(self, session_id: str) -> bool:
        """Log out and drop ``session_id``. Removing an absent id is a no-op."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await self._logout(session)
        logger.info("Session %s removed", session_id)
        return True

    def size(self) -> int:
        return len(self._sessions)

    async def sweep(self) -> int:
        """Remove every session idle for longer than the timeout."""
        async with self._lock:
            now = self._clock()
            expired = [s for s in self._sessions.values() if self._is_idle(s, now)]
            for session in expired:
                del self._sessions[session.id]
        for session in expired:
            await self._logout(session)
            logger.info("Cleaned up expired session: %s", session.id)
        return len(expired)

    async def _logout(self, session: Session) -> None:
        try:
            await session.handle.logout()
        except Exception as e:
            logger.warning("Logout error for session %s (non-critical): %s", session.id, e)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.sweep()
            except Exception:
                logger.exception("Session sweep failed")

    def start(self) -> None:
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop())
            logger.info("Session sweep every %ss (idle timeout %ss)",
                        self.sweep_interval, self.idle_timeout)

    async def close(self) -> None:
        """Stop the sweep task and log out every remaining session."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None
        async with self._lock:
            remaining = list(self._sessions.values())
            self._sessions.clear()
        for session in remaining:
            await self._logout(session)
        if remaining:
            logger.info("Closed %d session(s) on shutdown", len(remaining))
