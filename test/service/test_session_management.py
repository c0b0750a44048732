from httpx import AsyncClient
import pytest


async def sign_in(client: AsyncClient, scope: str = "user", token: str = "alice-token", remember_me: bool = False):
    response = await client.post(
        f"/sessions/{scope}",
        headers={"Login-Token": token},
        params={"remember_me": "true"} if remember_me else None,
    )
    assert response.status_code == 200, response.text
    return response


@pytest.mark.asyncio
async def test_create_session_missing_token(client: AsyncClient):
    response = await client.post("/sessions/user")
    assert response.status_code == 401
    assert response.json()["error_code"] == "authentication_failed"


@pytest.mark.asyncio
async def test_create_session_invalid_token(client: AsyncClient):
    response = await client.post("/sessions/user", headers={"Login-Token": "mallory-token"})
    assert response.status_code == 401
    assert "session" not in response.cookies


@pytest.mark.asyncio
async def test_create_session(client: AsyncClient):
    response = await sign_in(client)

    assert "session" in response.cookies
    assert response.json() == {
        "message": "Session created",
        "scope": "user",
        "principal_type": "user",
        "remember_me": False,
    }


@pytest.mark.asyncio
async def test_protected_route_without_session(client: AsyncClient):
    response = await client.get("/sessions/user/status")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_protected_route_for_other_scope(client: AsyncClient):
    await sign_in(client)

    response = await client.get("/sessions/admin/status")

    assert response.status_code == 401
    assert response.json()["error_code"] == "not_authenticated"


@pytest.mark.asyncio
async def test_first_request_records_activity(client: AsyncClient, clock):
    await sign_in(client)

    response = await client.get("/sessions/user/status")

    assert response.status_code == 200
    body = response.json()
    assert body["principal_id"] == "alice"
    assert body["timeout_in"] == 1800
    assert body["last_request_at"] == clock.epoch


@pytest.mark.asyncio
async def test_activity_is_refreshed(client: AsyncClient, clock):
    await sign_in(client)
    await client.get("/sessions/user/status")

    clock.advance(minutes=29)
    response = await client.get("/sessions/user/status")

    assert response.status_code == 200
    assert response.json()["last_request_at"] == clock.epoch


@pytest.mark.asyncio
async def test_idle_session_redirects_to_sign_in(client: AsyncClient, clock):
    await sign_in(client)
    await client.get("/sessions/user/status")

    clock.advance(minutes=31)
    response = await client.get("/sessions/user/status")

    assert response.status_code == 303
    assert response.headers["location"] == "/login?scope=user&reason=timeout"

    # The only scope is gone, so is the session
    response = await client.get("/sessions/user/status")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_idle_session_exact_boundary(client: AsyncClient, clock):
    await sign_in(client)
    await client.get("/sessions/user/status")

    clock.advance(minutes=30)
    response = await client.get("/sessions/user/status")

    assert response.status_code == 303


@pytest.mark.asyncio
async def test_idle_session_json_client(client: AsyncClient, clock):
    await sign_in(client)
    await client.get("/sessions/user/status")

    clock.advance(minutes=31)
    response = await client.get("/sessions/user/status", headers={"Accept": "application/json"})

    assert response.status_code == 401
    body = response.json()
    assert body["error_code"] == "session_timeout"
    assert body["scope"] == "user"
    assert body["reason"] == "timeout"


@pytest.mark.asyncio
async def test_sign_in_page(client: AsyncClient):
    response = await client.get("/login", params={"scope": "user", "reason": "timeout"})
    assert response.status_code == 200
    assert response.json()["message"] == "Your session timed out, please sign in again"


@pytest.mark.asyncio
async def test_remember_me_bypasses_timeout(client: AsyncClient, clock):
    response = await sign_in(client, remember_me=True)
    assert "remember_user_token" in response.cookies
    await client.get("/sessions/user/status")

    clock.advance(minutes=31)
    response = await client.get("/sessions/user/status")

    assert response.status_code == 200
    assert response.json()["last_request_at"] == clock.epoch


@pytest.mark.asyncio
async def test_ping_does_not_refresh_activity(client: AsyncClient, clock):
    await sign_in(client)
    await client.get("/sessions/user/status")
    started = clock.epoch

    clock.advance(minutes=10)
    response = await client.get("/sessions/user/ping")

    assert response.status_code == 200
    assert response.json()["last_request_at"] == started

    # Pings do not keep the session alive
    clock.advance(minutes=20)
    response = await client.get("/sessions/user/ping")
    assert response.status_code == 303


@pytest.mark.asyncio
async def test_poll_skips_timeout(client: AsyncClient, clock):
    await sign_in(client)
    await client.get("/sessions/user/status")

    clock.advance(minutes=45)
    response = await client.get("/sessions/user/poll")

    assert response.status_code == 200
    assert response.json()["last_request_at"] == clock.epoch


@pytest.mark.asyncio
async def test_peek_does_not_touch_session(client: AsyncClient, clock):
    await sign_in(client)
    await client.get("/sessions/user/status")
    started = clock.epoch

    clock.advance(minutes=45)
    response = await client.get("/sessions/user/peek")

    assert response.status_code == 200
    assert response.json()["last_request_at"] == started


@pytest.mark.asyncio
async def test_not_timeout_aware_principal_never_times_out(client: AsyncClient, clock):
    await sign_in(client, scope="api", token="bot-token")
    await client.get("/sessions/api/status")

    clock.advance(hours=2)
    response = await client.get("/sessions/api/status")

    assert response.status_code == 200
    body = response.json()
    assert body["principal_type"] == "api_client"
    assert body["timeout_in"] is None
    assert body["last_request_at"] is None


@pytest.mark.asyncio
async def test_timeout_signs_out_only_expired_scope(client: AsyncClient, clock):
    await sign_in(client, scope="user", token="alice-token")
    await sign_in(client, scope="admin", token="root-token")
    await client.get("/sessions/user/status")
    await client.get("/sessions/admin/status")

    clock.advance(minutes=11)
    response = await client.get("/sessions/admin/status")
    assert response.status_code == 303
    assert response.headers["location"] == "/login?scope=admin&reason=timeout"

    response = await client.get("/sessions/user/status")
    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("sign_out_all_scopes", [True])
async def test_timeout_signs_out_all_scopes_when_configured(client: AsyncClient, clock, sign_out_all_scopes):
    await sign_in(client, scope="user", token="alice-token")
    await sign_in(client, scope="admin", token="root-token")
    await client.get("/sessions/user/status")
    await client.get("/sessions/admin/status")

    clock.advance(minutes=11)
    response = await client.get("/sessions/admin/status")
    assert response.status_code == 303

    response = await client.get("/sessions/user/status")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_pending_reset_is_applied(client: AsyncClient, clock):
    await sign_in(client)
    await client.get("/sessions/user/status")

    clock.advance(minutes=20)
    reset_at = clock.epoch
    response = await client.put("/sessions/user/reset-time", json={"reset_at": reset_at})
    assert response.status_code == 200
    assert response.json()["pending_reset_time"] == reset_at

    # Idle for 35 minutes since the last tracked request, but a reset is pending
    clock.advance(minutes=15)
    response = await client.get("/sessions/user/ping")

    assert response.status_code == 200
    body = response.json()
    assert body["last_request_at"] == reset_at
    assert body["last_reset_time"] == reset_at
    assert body["pending_reset_time"] is None


@pytest.mark.asyncio
async def test_future_reset_suppresses_timeout(client: AsyncClient, clock):
    await sign_in(client)
    await client.get("/sessions/user/status")

    clock.advance(minutes=20)
    reset_at = clock.epoch + 3600
    await client.put("/sessions/user/reset-time", json={"reset_at": reset_at})

    clock.advance(minutes=15)
    response = await client.get("/sessions/user/status")

    assert response.status_code == 200
    body = response.json()
    assert body["pending_reset_time"] == reset_at
    assert body["last_request_at"] == clock.epoch


@pytest.mark.asyncio
async def test_delete_session(client: AsyncClient):
    await sign_in(client)

    response = await client.delete("/sessions/user")
    assert response.status_code == 200
    assert response.json()["status"] == "signed_out"

    response = await client.get("/sessions/user/status")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_one_of_two_scopes(client: AsyncClient):
    await sign_in(client, scope="user", token="alice-token")
    await sign_in(client, scope="admin", token="root-token")

    response = await client.delete("/sessions/admin")
    assert response.json()["status"] == "signed_out"

    assert (await client.get("/sessions/user/status")).status_code == 200
    assert (await client.get("/sessions/admin/status")).status_code == 401


@pytest.mark.asyncio
async def test_health_status(client: AsyncClient):
    response = await client.get("/status")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.fixture
def second_worker(timeout_config, clock):
    """Point the app at a fresh principal store, as another process sharing the sessions would have."""
    from auth.principals import PrincipalStore
    from service.dependencies import get_principal_store
    from service.service import app

    def switch():
        store = PrincipalStore(timeout_config, now=clock)
        app.dependency_overrides[get_principal_store] = lambda: store
        return store

    return switch


@pytest.mark.asyncio
async def test_session_survives_unknown_principal(client: AsyncClient, clock, second_worker):
    await sign_in(client)
    store = second_worker()

    response = await client.get("/sessions/user/status")

    assert response.status_code == 200
    body = response.json()
    assert body["principal_id"] == "alice"
    assert body["timeout_in"] == 1800
    assert store.get("user", "alice") is not None


@pytest.mark.asyncio
async def test_restored_principal_still_times_out(client: AsyncClient, clock, second_worker):
    await sign_in(client)
    await client.get("/sessions/user/status")
    second_worker()

    clock.advance(minutes=31)
    response = await client.get("/sessions/user/status")

    assert response.status_code == 303


@pytest.mark.asyncio
async def test_remember_me_survives_unknown_principal(client: AsyncClient, clock, second_worker):
    await sign_in(client, remember_me=True)
    await client.get("/sessions/user/status")
    second_worker()

    clock.advance(minutes=31)
    response = await client.get("/sessions/user/status")

    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("reset_at", [10**18, -1])
async def test_reset_time_out_of_range_is_rejected(client: AsyncClient, reset_at):
    await sign_in(client)

    response = await client.put("/sessions/user/reset-time", json={"reset_at": reset_at})

    assert response.status_code == 422
    status = (await client.get("/sessions/user/peek")).json()
    assert status["pending_reset_time"] is None


@pytest.mark.asyncio
async def test_reset_time_can_be_cleared(client: AsyncClient, clock):
    await sign_in(client)
    await client.put("/sessions/user/reset-time", json={"reset_at": clock.epoch + 60})

    response = await client.put("/sessions/user/reset-time", json={"reset_at": None})

    assert response.status_code == 200
    assert response.json()["pending_reset_time"] is None
