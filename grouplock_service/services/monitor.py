import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

SessionResolver = Callable[[str], Awaitable[Optional[Any]]]


@dataclass
class GroupMonitor:
    session_id: str
    group_id: str
    lock_nickname: Optional[str]
    lock_group_name: Optional[str]
    started_at: float
    violations: int = 0
    member_count: int = 0
    last_check: Optional[datetime] = None
    last_error: Optional[str] = None
    task: Optional[asyncio.Task] = field(default=None, repr=False)


class GroupMonitorManager:
    """Keeps locked group names and nicknames in place.

    Each monitor polls its group every ``interval`` seconds and reverts any
    drift it finds, counting one violation per reverted value. Sessions are
    looked up through ``resolve_session`` on every tick; a monitor whose
    session is gone stops itself.
    """

    def __init__(
        self,
        resolve_session: SessionResolver,
        interval: float = 60.0,
        delay_seconds: float = 1.0,
        clock: Callable[[], float] = time.time,
    ):
        self._resolve_session = resolve_session
        self.interval = interval
        self.delay_seconds = delay_seconds
        self._clock = clock
        self._monitors: dict[tuple[str, str], GroupMonitor] = {}

    def start(
        self,
        session_id: str,
        group_id: str,
        lock_nickname: Optional[str] = None,
        lock_group_name: Optional[str] = None,
        run: bool = True,
    ) -> GroupMonitor:
        if not lock_nickname and not lock_group_name:
            raise ValueError("At least one of lock_nickname or lock_group_name is required")
        self.stop(session_id, group_id)
        monitor = GroupMonitor(
            session_id=session_id,
            group_id=group_id,
            lock_nickname=lock_nickname or None,
            lock_group_name=lock_group_name or None,
            started_at=self._clock(),
        )
        self._monitors[(session_id, group_id)] = monitor
        if run:
            monitor.task = asyncio.create_task(self._run(monitor))
        logger.info("Monitoring started for group %s (session %s)", group_id, session_id)
        return monitor

    def get(self, session_id: str, group_id: str) -> Optional[GroupMonitor]:
        return self._monitors.get((session_id, group_id))

    def stop(self, session_id: str, group_id: str) -> bool:
        monitor = self._monitors.pop((session_id, group_id), None)
        if monitor is None:
            return False
        if monitor.task is not None and monitor.task is not asyncio.current_task():
            monitor.task.cancel()
        logger.info("Monitoring stopped for group %s (session %s)", group_id, session_id)
        return True

    def stop_session(self, session_id: str) -> int:
        keys = [key for key in self._monitors if key[0] == session_id]
        for key in keys:
            self.stop(*key)
        return len(keys)

    async def close(self) -> None:
        monitors = list(self._monitors.values())
        self._monitors.clear()
        tasks = [m.task for m in monitors if m.task is not None]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def status(self, session_id: str, group_id: str) -> dict:
        monitor = self.get(session_id, group_id)
        if monitor is None:
            return {"active": False}
        return {
            "active": True,
            "violations": monitor.violations,
            "uptime": int(self._clock() - monitor.started_at),
            "lockNickname": monitor.lock_nickname,
            "lockGroupName": monitor.lock_group_name,
            "memberCount": monitor.member_count,
            "lastCheck": monitor.last_check.isoformat() if monitor.last_check else None,
            "lastError": monitor.last_error,
        }

    async def _run(self, monitor: GroupMonitor) -> None:
        while True:
            handle = await self._resolve_session(monitor.session_id)
            if handle is None:
                logger.info("Session %s is gone, ending monitor for group %s",
                            monitor.session_id, monitor.group_id)
                self.stop(monitor.session_id, monitor.group_id)
                return
            await self.check(monitor, handle)
            await asyncio.sleep(self.interval)

    async def check(self, monitor: GroupMonitor, handle) -> int:
        """Run one enforcement pass and return the number of values reverted."""
        try:
            info = await handle.get_thread_info(monitor.group_id)
        except Exception as e:
            monitor.last_error = f"Failed to get group info: {e}"
            logger.warning("Monitor check failed for group %s: %s", monitor.group_id, e)
            return 0

        monitor.last_check = datetime.now(timezone.utc)
        monitor.member_count = len(info.participant_ids)
        monitor.last_error = None
        reverted = 0

        if monitor.lock_group_name and info.name != monitor.lock_group_name:
            try:
                await handle.set_title(monitor.lock_group_name, monitor.group_id)
                reverted += 1
                logger.info("Group %s name reverted to %r", monitor.group_id, monitor.lock_group_name)
            except Exception as e:
                monitor.last_error = f"Failed to restore group name: {e}"
                logger.warning("Failed to restore name of group %s: %s", monitor.group_id, e)

        if monitor.lock_nickname:
            drifted = [uid for uid in info.participant_ids
                       if info.nicknames.get(uid) != monitor.lock_nickname]
            for index, user_id in enumerate(drifted, start=1):
                try:
                    await handle.change_nickname(monitor.lock_nickname, monitor.group_id, user_id)
                    reverted += 1
                except Exception as e:
                    monitor.last_error = f"Failed to restore nickname for {user_id}: {e}"
                    logger.warning("Failed to restore nickname for user %s: %s", user_id, e)
                if index < len(drifted) and self.delay_seconds > 0:
                    await asyncio.sleep(self.delay_seconds)

        monitor.violations += reverted
        if reverted:
            logger.info("Group %s: %d violation(s) reverted", monitor.group_id, reverted)
        return reverted
