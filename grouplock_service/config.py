import re

from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Optional


class GrouplockSettings(BaseSettings):
    """GroupLock service configuration.

    The messaging client is plugged in through ``messenger_login``, an import
    path of the form ``package.module:callable``. The callable receives the
    decoded appState list and returns an authenticated client handle.
    Without it the service starts, but login answers 503.
    """

    grouplock_service_port: int = 3000
    grouplock_service_token: Optional[str] = None
    messenger_login: Optional[str] = None

    session_idle_timeout_seconds: float = 1800.0
    session_sweep_interval_seconds: float = 300.0

    nickname_delay_seconds: float = 1.0
    client_call_timeout_seconds: float = 30.0
    thread_list_limit: int = 50
    appstate_max_bytes: int = 1024 * 1024

    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: float = 900.0

    monitor_interval_seconds: float = 60.0

    model_config = {"env_prefix": "", "case_sensitive": False}

    @field_validator("messenger_login")
    @classmethod
    def validate_messenger_login(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not re.match(r"^[A-Za-z_][\w.]*:[A-Za-z_][\w.]*$", v):
            raise ValueError(f"Invalid messenger_login: {v!r} (expected 'package.module:callable')")
        return v

    @field_validator("session_idle_timeout_seconds", "session_sweep_interval_seconds",
                     "client_call_timeout_seconds", "monitor_interval_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("nickname_delay_seconds")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @property
    def rate_limit_enabled(self) -> bool:
        return self.rate_limit_max_requests > 0
