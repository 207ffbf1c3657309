from .sessions import LoginRequest
from .groups import ChangeAllRequest, ChangeAllResponse, GroupSummary, NicknameChanges
from .monitoring import StartMonitoringRequest, StopMonitoringRequest

__all__ = [
    "LoginRequest",
    "ChangeAllRequest",
    "ChangeAllResponse",
    "GroupSummary",
    "NicknameChanges",
    "StartMonitoringRequest",
    "StopMonitoringRequest",
]
