from pydantic import BaseModel, Field
from typing import Any


class LoginRequest(BaseModel):
    app_state: Any = Field(alias="appState", default=None)

    model_config = {"populate_by_name": True}
