"""Test configuration and shared fixtures for GroupLock service tests.

A fake in-memory messaging client stands in for the platform, so no network
access or real credentials are needed.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from grouplock_service.config import GrouplockSettings
from grouplock_service.messenger import Thread, ThreadInfo


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_settings(**overrides) -> GrouplockSettings:
    defaults = {
        "grouplock_service_token": None,
        "messenger_login": None,
        "session_idle_timeout_seconds": 1800,
        "session_sweep_interval_seconds": 300,
        "nickname_delay_seconds": 0,
        "client_call_timeout_seconds": 5,
        "rate_limit_max_requests": 0,
        "monitor_interval_seconds": 60,
    }
    defaults.update(overrides)
    return GrouplockSettings(**defaults)


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fake messaging client
# ---------------------------------------------------------------------------

class FakeMessengerClient:
    """Async stand-in for an authenticated platform handle.

    Every call is appended to ``calls`` so tests can assert on ordering.
    """

    def __init__(self, threads=None, members=None, group_name=None, nicknames=None,
                 fail_nicknames=(), fail_title=False, fail_info=False,
                 fail_threads=False, fail_logout=False):
        self.threads = threads or []
        self.members = list(members or [])
        self.group_name = group_name
        self.nicknames = dict(nicknames or {})
        self.fail_nicknames = set(fail_nicknames)
        self.fail_title = fail_title
        self.fail_info = fail_info
        self.fail_threads = fail_threads
        self.fail_logout = fail_logout
        self.calls = []
        self.logout_count = 0

    async def get_thread_list(self, limit, cursor, tags):
        self.calls.append(("get_thread_list", limit, cursor, tuple(tags)))
        if self.fail_threads:
            raise RuntimeError("thread list unavailable")
        return list(self.threads)

    async def get_thread_info(self, group_id):
        self.calls.append(("get_thread_info", group_id))
        if self.fail_info:
            raise RuntimeError("thread info unavailable")
        return ThreadInfo(
            thread_id=group_id,
            name=self.group_name,
            participant_ids=list(self.members),
            nicknames=dict(self.nicknames),
        )

    async def set_title(self, name, group_id):
        self.calls.append(("set_title", name, group_id))
        if self.fail_title:
            raise RuntimeError("not allowed to rename")
        self.group_name = name

    async def change_nickname(self, nickname, group_id, user_id):
        self.calls.append(("change_nickname", nickname, group_id, user_id))
        if user_id in self.fail_nicknames:
            raise RuntimeError(f"cannot change nickname for {user_id}")
        self.nicknames[user_id] = nickname

    async def logout(self):
        self.logout_count += 1
        self.calls.append(("logout",))
        if self.fail_logout:
            raise RuntimeError("logout failed")

    def nickname_targets(self):
        return [c[3] for c in self.calls if c[0] == "change_nickname"]


def make_threads():
    return [
        Thread(thread_id="g1", name="Math", is_group=True, participant_ids=["u1", "u2", "u3"]),
        Thread(thread_id="dm1", name="Alice", is_group=False, participant_ids=["me", "alice"]),
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings():
    return _make_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_client():
    """Factory for extra fake clients with custom behaviour."""
    return FakeMessengerClient


@pytest.fixture
def fake_client():
    return FakeMessengerClient(threads=make_threads(), members=["u1", "u2", "u3"], group_name="Math")


@pytest.fixture
def login_calls():
    return []


@pytest.fixture
def fake_login(fake_client, login_calls):
    async def login(app_state):
        login_calls.append(app_state)
        if app_state == ["bad"]:
            raise RuntimeError("Wrong username/password.")
        return fake_client

    return login


@pytest_asyncio.fixture
async def app_no_client():
    """FastAPI app with no messenger login configured."""
    from grouplock_service.main import app, build_state

    build_state(app, _make_settings())
    yield app


@pytest_asyncio.fixture
async def app_with_fake(fake_login):
    """FastAPI app whose logins all produce the shared fake client."""
    from grouplock_service.main import app, build_state

    build_state(app, _make_settings())
    app.state.messenger_login = fake_login
    yield app
    await app.state.monitors.close()


@pytest_asyncio.fixture
async def client_no_client(app_no_client):
    transport = ASGITransport(app=app_no_client)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def client(app_with_fake):
    """AsyncClient hitting the app backed by the fake messaging client."""
    transport = ASGITransport(app=app_with_fake)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def session_id(app_with_fake, fake_client):
    """A live session registered directly against the fake client."""
    return await app_with_fake.state.registry.create(fake_client)
