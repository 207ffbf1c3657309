import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Hashable, Optional

from ..errors import UpstreamError
from ..messenger import MessengerClient

logger = logging.getLogger(__name__)


@dataclass
class MutationBatchResult:
    group_name_changed: bool = False
    nickname_success_count: int = 0
    nickname_failure_count: int = 0
    members_targeted: int = 0
    cancelled: bool = False


class KeyedLocks:
    """One asyncio.Lock per key, dropped once nobody holds or awaits it."""

    def __init__(self):
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


class BatchMutationOrchestrator:
    """Renames a group and/or forces one nickname on every member.

    Nickname calls go out one at a time in member-list order, spaced by
    ``delay_seconds``. A failing member is counted and skipped; it never
    stops the run.
    """

    def __init__(self, delay_seconds: float = 1.0):
        self.delay_seconds = delay_seconds
        self.locks = KeyedLocks()

    async def _pause(self, stop: Optional[asyncio.Event]) -> bool:
        """Wait out the inter-call delay. Returns True if ``stop`` was set."""
        if stop is None:
            if self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)
            return False
        if self.delay_seconds <= 0:
            return stop.is_set()
        try:
            await asyncio.wait_for(stop.wait(), timeout=self.delay_seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def apply(
        self,
        handle: MessengerClient,
        group_id: str,
        new_group_name: Optional[str] = None,
        new_nickname: Optional[str] = None,
        stop: Optional[asyncio.Event] = None,
    ) -> MutationBatchResult:
        if not new_group_name and not new_nickname:
            raise ValueError("At least one of new_group_name or new_nickname is required")

        result = MutationBatchResult()

        if new_group_name:
            try:
                await handle.set_title(new_group_name, group_id)
                result.group_name_changed = True
                logger.info("Group %s renamed to %r", group_id, new_group_name)
            except Exception as e:
                logger.error("Change group name error for %s: %s", group_id, e)

        if not new_nickname:
            return result

        try:
            info = await handle.get_thread_info(group_id)
        except Exception as e:
            logger.error("Failed to get group info for %s: %s", group_id, e)
            raise UpstreamError("Failed to get group info") from e

        member_ids = list(info.participant_ids)
        total = result.members_targeted = len(member_ids)

        for index, user_id in enumerate(member_ids, start=1):
            if stop is not None and stop.is_set():
                result.cancelled = True
                break
            try:
                await handle.change_nickname(new_nickname, group_id, user_id)
                result.nickname_success_count += 1
                logger.info("Changed nickname for user %s (%d/%d)", user_id, index, total)
            except Exception as e:
                result.nickname_failure_count += 1
                logger.warning("Failed to change nickname for user %s: %s", user_id, e)
            if index < total and await self._pause(stop):
                result.cancelled = True
                break

        logger.info(
            "Batch on %s finished: nicknames %d ok, %d failed of %d; group name %s%s",
            group_id,
            result.nickname_success_count,
            result.nickname_failure_count,
            total,
            "changed" if result.group_name_changed else "unchanged",
            " (cancelled)" if result.cancelled else "",
        )
        return result
