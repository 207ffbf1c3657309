from pydantic import BaseModel, Field
from typing import Optional


class StartMonitoringRequest(BaseModel):
    session_id: Optional[str] = Field(alias="sessionId", default=None)
    group_id: Optional[str] = Field(alias="groupId", default=None)
    lock_nickname: Optional[str] = Field(alias="lockNickname", default=None)
    lock_group_name: Optional[str] = Field(alias="lockGroupName", default=None)

    model_config = {"populate_by_name": True}


class StopMonitoringRequest(BaseModel):
    session_id: Optional[str] = Field(alias="sessionId", default=None)
    group_id: Optional[str] = Field(alias="groupId", default=None)

    model_config = {"populate_by_name": True}
