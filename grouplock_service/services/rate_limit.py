import time
from typing import Callable

EVICT_THRESHOLD = 1024


class FixedWindowRateLimiter:
    """Counts requests per key in fixed windows of ``window_seconds``."""

    def __init__(self, limit: int, window_seconds: float = 900.0,
                 clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_evicted = clock()

    def allow(self, key: str) -> bool:
        now = self._clock()
        window_start, count = self._windows.get(key, (now, 0))
        if now - window_start >= self.window_seconds:
            window_start, count = now, 0
        count += 1
        self._windows[key] = (window_start, count)
        self._evict(now)
        return count <= self.limit

    def _evict(self, now: float) -> None:
        # At most one scan per window, and only once the table is large.
        if len(self._windows) < EVICT_THRESHOLD:
            return
        if now - self._last_evicted < self.window_seconds:
            return
        self._last_evicted = now
        self._drop_stale(now)

    def _drop_stale(self, now: float) -> None:
        stale = [k for k, (start, _) in self._windows.items() if now - start >= self.window_seconds]
        for key in stale:
            del self._windows[key]
