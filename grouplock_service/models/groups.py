from pydantic import BaseModel, Field
from typing import Optional


class ChangeAllRequest(BaseModel):
    session_id: Optional[str] = Field(alias="sessionId", default=None)
    group_id: Optional[str] = Field(alias="groupId", default=None)
    nickname: Optional[str] = None
    group_name: Optional[str] = Field(alias="groupName", default=None)

    model_config = {"populate_by_name": True}


class GroupSummary(BaseModel):
    id: str
    name: str
    member_count: int = Field(serialization_alias="memberCount", default=0)


class NicknameChanges(BaseModel):
    success: int = 0
    failed: int = 0


class ChangeAllResponse(BaseModel):
    success: bool = True
    message: str
    nickname_changes: NicknameChanges = Field(serialization_alias="nicknameChanges")
    group_name_changed: bool = Field(serialization_alias="groupNameChanged")
    cancelled: bool = False
