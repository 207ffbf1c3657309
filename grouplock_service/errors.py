"""Service exceptions and the HTTP status each one maps to."""

from __future__ import annotations

from typing import Optional


class GrouplockError(Exception):
    """Base class for failures that translate into an HTTP error response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidRequestError(GrouplockError):
    """Raised when request fields are missing or malformed."""

    status_code = 400
    default_message = "Invalid request"


class SessionNotFoundError(GrouplockError):
    """Raised when a session id is unknown, logged out or expired."""

    status_code = 401
    default_message = "Invalid or expired session"


class AuthError(GrouplockError):
    """Raised when the messaging platform rejects the supplied appState."""

    status_code = 401
    default_message = "Login failed"

    def __init__(self, details: Optional[str] = None) -> None:
        super().__init__(details=details or "Invalid credentials")


class UpstreamError(GrouplockError):
    """Raised when a platform call the request cannot do without fails."""

    status_code = 500
    default_message = "Upstream request failed"


class ClientUnavailableError(GrouplockError):
    """Raised when no messaging client has been configured."""

    status_code = 503
    default_message = "Messenger client not configured"


__all__ = [
    "GrouplockError",
    "InvalidRequestError",
    "SessionNotFoundError",
    "AuthError",
    "UpstreamError",
    "ClientUnavailableError",
]
