"""Tests for /api/login, /api/session/{id}/status and /api/logout/{id}."""

import json

import pytest


pytestmark = pytest.mark.asyncio


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

async def test_login_with_json_app_state(client, login_calls):
    """POST /api/login issues a fresh session id for a valid appState."""
    resp = await client.post("/api/login", json={"appState": ["cookie1", "cookie2"]})
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "Logged in successfully"
    assert data["sessionId"]
    assert login_calls == [["cookie1", "cookie2"]]

    status = await client.get(f"/api/session/{data['sessionId']}/status")
    assert status.status_code == 200
    assert status.json()["active"] is True


async def test_login_issues_distinct_session_ids(client):
    ids = set()
    for _ in range(5):
        resp = await client.post("/api/login", json={"appState": ["cookie1"]})
        ids.add(resp.json()["sessionId"])
    assert len(ids) == 5


async def test_login_with_app_state_as_json_string(client, login_calls):
    resp = await client.post("/api/login", json={"appState": json.dumps([{"key": "c_user"}])})
    assert resp.status_code == 200
    assert login_calls == [[{"key": "c_user"}]]


async def test_login_with_uploaded_file(client, login_calls):
    content = json.dumps([{"key": "xs", "value": "abc"}]).encode()
    resp = await client.post(
        "/api/login",
        files={"appstate": ("appstate.json", content, "application/json")},
    )
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert login_calls == [[{"key": "xs", "value": "abc"}]]


async def test_login_rejects_oversized_file(client, app_with_fake, login_calls):
    app_with_fake.state.settings.appstate_max_bytes = 16
    content = json.dumps(["x" * 64]).encode()
    resp = await client.post(
        "/api/login",
        files={"appstate": ("appstate.json", content, "application/json")},
    )
    assert resp.status_code == 400
    assert login_calls == []


async def test_login_missing_app_state(client, login_calls):
    resp = await client.post("/api/login", json={})
    assert resp.status_code == 400
    assert resp.json()["error"] == "No appState provided"

    resp = await client.post("/api/login")
    assert resp.status_code == 400
    assert login_calls == []


@pytest.mark.parametrize("app_state", [[], {}, "not json", "{}", "[]", 42])
async def test_login_invalid_app_state_format(client, login_calls, app_state):
    """Anything but a non-empty list is rejected before authenticating."""
    resp = await client.post("/api/login", json={"appState": app_state})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid appState format"
    assert login_calls == []


async def test_login_malformed_body(client):
    resp = await client.post(
        "/api/login",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400


async def test_login_auth_failure(client):
    """Upstream rejection maps to 401 with the upstream detail."""
    resp = await client.post("/api/login", json={"appState": ["bad"]})
    assert resp.status_code == 401
    data = resp.json()
    assert data["error"] == "Login failed"
    assert data["details"] == "Wrong username/password."


async def test_login_without_configured_client(client_no_client):
    resp = await client_no_client.post("/api/login", json={"appState": ["cookie1"]})
    assert resp.status_code == 503


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

async def test_session_status_reports_timestamps_in_ms(client, app_with_fake, session_id):
    session = await app_with_fake.state.registry.peek(session_id)

    resp = await client.get(f"/api/session/{session_id}/status")
    assert resp.status_code == 200
    data = resp.json()
    assert data["active"] is True
    assert data["createdAt"] == int(session.created_at * 1000)
    assert data["lastUsed"] == int(session.last_used_at * 1000)


async def test_session_status_unknown(client):
    resp = await client.get("/api/session/nope/status")
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid or expired session"


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------

async def test_logout_is_idempotent(client, fake_client, session_id):
    first = await client.post(f"/api/logout/{session_id}")
    second = await client.post(f"/api/logout/{session_id}")

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json() == {"message": "Logged out successfully"}
    assert fake_client.logout_count == 1

    status = await client.get(f"/api/session/{session_id}/status")
    assert status.status_code == 401


async def test_logout_unknown_session_is_ok(client):
    resp = await client.post("/api/logout/never-issued")
    assert resp.status_code == 200


async def test_logout_with_failing_platform_logout(client, app_with_fake, make_client):
    handle = make_client(fail_logout=True)
    sid = await app_with_fake.state.registry.create(handle)

    resp = await client.post(f"/api/logout/{sid}")
    assert resp.status_code == 200
    assert app_with_fake.state.registry.size() == 0


@pytest.mark.parametrize("path", [
    "/api/groups/{sid}",
    "/api/session/{sid}/status",
    "/api/monitoring-status/{sid}/g1",
])
async def test_logged_out_session_is_rejected_everywhere(client, session_id, path):
    await client.post(f"/api/logout/{session_id}")
    resp = await client.get(path.format(sid=session_id))
    assert resp.status_code == 401
