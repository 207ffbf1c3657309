from .client import BoundedClient, MessengerClient, authenticate, load_login
from .threads import Thread, ThreadInfo

__all__ = [
    "BoundedClient",
    "MessengerClient",
    "Thread",
    "ThreadInfo",
    "authenticate",
    "load_login",
]
