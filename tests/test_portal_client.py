import asyncio

import httpx
import pytest

from services.portal.errors import RequestRejected, ServerFault, SessionExpired, TransportError
from services.portal.http_client import PortalClient
from services.portal.session import SessionState, TokenStore


def _call(session, handler, fn):
    async def run():
        async with PortalClient(session, base_url="http://portal.test/v1",
                                transport=httpx.MockTransport(handler)) as client:
            return await fn(client)
    return asyncio.run(run())


def _logged_in(tmp_path):
    session = SessionState(TokenStore(tmp_path / "token.json"))
    session.login("abc")
    return session


# ==========================================================
# [오류 분류]
# ==========================================================

def test_bearer_header_and_data_unwrapped(tmp_path):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"status": "success", "data": [1, 2]})

    data = _call(_logged_in(tmp_path), handler, lambda c: c.get("/holidays", startDate="2025-04-01", endDate=None))

    assert data == [1, 2]
    assert seen["auth"] == "Bearer abc"
    # None 파라미터는 보내지 않는다
    assert seen["params"] == {"startDate": "2025-04-01"}


def test_401_outside_auth_clears_stored_token(tmp_path):
    session = _logged_in(tmp_path)
    assert (tmp_path / "token.json").exists()

    with pytest.raises(SessionExpired) as exc_info:
        _call(session, lambda r: httpx.Response(401, json={"status": "error", "message": "Invalid token"}),
              lambda c: c.get("/leaves"))

    assert exc_info.value.status_code == 401
    assert session.token is None
    assert not (tmp_path / "token.json").exists()


def test_401_on_login_keeps_session(tmp_path):
    session = _logged_in(tmp_path)

    with pytest.raises(RequestRejected) as exc_info:
        _call(session, lambda r: httpx.Response(401, json={"status": "error", "message": "Invalid email or password"}),
              lambda c: c.login("someone@school.test", "wrong"))

    assert not isinstance(exc_info.value, SessionExpired)
    assert exc_info.value.message == "Invalid email or password"
    assert session.token == "abc"


def test_4xx_carries_server_message(tmp_path):
    with pytest.raises(RequestRejected) as exc_info:
        _call(_logged_in(tmp_path),
              lambda r: httpx.Response(400, json={"status": "error", "message": "Result is locked and cannot be modified"}),
              lambda c: c.post("/results/subject", {}))
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Result is locked and cannot be modified"


def test_5xx_and_malformed_bodies_are_server_faults(tmp_path):
    session = _logged_in(tmp_path)

    with pytest.raises(ServerFault):
        _call(session, lambda r: httpx.Response(503, text="upstream down"), lambda c: c.get("/holidays"))
    with pytest.raises(ServerFault):
        _call(session, lambda r: httpx.Response(200, json={"unexpected": True}), lambda c: c.get("/holidays"))


def test_error_envelope_with_200_is_rejected(tmp_path):
    with pytest.raises(RequestRejected):
        _call(_logged_in(tmp_path), lambda r: httpx.Response(200, json={"status": "error", "message": "Nope"}),
              lambda c: c.get("/holidays"))


def test_transport_failure(tmp_path):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        _call(_logged_in(tmp_path), handler, lambda c: c.get("/holidays"))


# ==========================================================
# [세션 / 캐시]
# ==========================================================

def test_token_store_round_trip(tmp_path):
    store = TokenStore(tmp_path / "token.json")
    assert store.load() is None

    store.save("xyz")
    assert SessionState(store).token == "xyz"

    store.clear()
    assert store.load() is None


def test_corrupt_token_file_is_ignored(tmp_path):
    path = tmp_path / "token.json"
    path.write_text("{not json", encoding="utf-8")
    assert TokenStore(path).load() is None


def test_profile_cache_invalidated_on_update(tmp_path):
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path))
        if request.method == "PATCH":
            return httpx.Response(200, json={"status": "success", "data": {"phone": "9800000000"}})
        return httpx.Response(200, json={"status": "success", "data": {
            "user": {"id": 1, "role": "TEACHER"}, "profile": {"id": 4, "phone": str(len(calls))},
        }})

    session = _logged_in(tmp_path)

    async def flow(client):
        first = await client.me()
        cached = await client.me()
        await client.update_profile(phone="9800000000")
        fresh = await client.me()
        return first, cached, fresh

    first, cached, fresh = _call(session, handler, flow)

    assert first == cached
    assert [c for c in calls if c[0] == "GET"] == [("GET", "/v1/users/me"), ("GET", "/v1/users/me")]
    assert fresh["profile"]["phone"] != first["profile"]["phone"]


def test_logout_clears_session_even_if_request_fails(tmp_path):
    session = _logged_in(tmp_path)

    with pytest.raises(ServerFault):
        _call(session, lambda r: httpx.Response(500, json={"status": "error", "message": "boom"}),
              lambda c: c.logout())
    assert session.token is None
    assert session.user is None


def test_login_against_api(school, make_portal):
    async def run():
        async with make_portal() as client:
            data = await client.login("sita@school.test", "secret123")
            me = await client.me()
            return client.session, data, me

    session, data, me = asyncio.run(run())

    assert session.token == data["token"]
    assert data["user"]["role"] == "TEACHER"
    assert me["profile"]["id"] == school.sita_id
