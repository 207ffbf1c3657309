from dataclasses import dataclass, field
from typing import Any, Optional


def _field(raw: Any, *names: str, default=None):
    """Read the first present key/attribute out of a raw platform record."""
    for name in names:
        if isinstance(raw, dict):
            if name in raw and raw[name] is not None:
                return raw[name]
        else:
            value = getattr(raw, name, None)
            if value is not None:
                return value
    return default


@dataclass
class Thread:
    thread_id: str
    name: Optional[str] = None
    is_group: bool = False
    participant_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: Any) -> "Thread":
        if isinstance(raw, cls):
            return raw
        return cls(
            thread_id=str(_field(raw, "threadID", "thread_id", "id", default="")),
            name=_field(raw, "name", "threadName", "thread_name"),
            is_group=bool(_field(raw, "isGroup", "is_group", default=False)),
            participant_ids=[str(p) for p in _field(raw, "participantIDs", "participant_ids", default=[])],
        )


@dataclass
class ThreadInfo:
    thread_id: str
    name: Optional[str] = None
    participant_ids: list[str] = field(default_factory=list)
    nicknames: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any, thread_id: str = "") -> "ThreadInfo":
        if isinstance(raw, cls):
            return raw
        nicknames = _field(raw, "nicknames", default={}) or {}
        return cls(
            thread_id=str(_field(raw, "threadID", "thread_id", default=thread_id)),
            name=_field(raw, "threadName", "name", "thread_name"),
            participant_ids=[str(p) for p in _field(raw, "participantIDs", "participant_ids", default=[])],
            nicknames={str(k): v for k, v in nicknames.items()},
        )
