from .batch_mutation import BatchMutationOrchestrator, KeyedLocks, MutationBatchResult
from .monitor import GroupMonitor, GroupMonitorManager
from .rate_limit import FixedWindowRateLimiter
from .session_registry import Session, SessionRegistry

__all__ = [
    "BatchMutationOrchestrator",
    "FixedWindowRateLimiter",
    "GroupMonitor",
    "GroupMonitorManager",
    "KeyedLocks",
    "MutationBatchResult",
    "Session",
    "SessionRegistry",
]
