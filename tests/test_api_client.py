"""Tests for the backend API client: request shapes and failure folding."""

import asyncio
from http import HTTPStatus

import httpx
import pytest

from conftest import ALICE, BACKEND_URL, request_json
from trackweb.schemas.auth import AccessToken
from trackweb.schemas.points import TrackPoints
from trackweb.schemas.user import NewUserRequest, UpdateUserRequest
from trackweb.services.api_client import APIClient, ApiConventions, ErrorKind

WORLD_ATHS_ROW = {"Id": 12, "Points": 1050, "Gender": "Male", "Category": "Outdoor", "Event": "100m", "Mark": 10.5}


def test_login_posts_credentials_and_returns_token(backend, api_client):
    backend.on("POST", "/api/auth/login", 200, {"status": "ok", "access_token": "abc123"})

    status, token = asyncio.run(api_client.login("alice", "secret"))

    assert status == HTTPStatus.OK
    assert token == AccessToken(status="ok", access_token="abc123")
    (sent,) = backend.calls("POST", "/api/auth/login")
    assert request_json(sent) == {"user_name": "alice", "password": "secret"}
    assert "authorization" not in sent.headers


def test_login_uses_configured_credential_field(backend):
    backend.on("POST", "/api/auth/login", 200, {"status": "success", "access_token": "t"})
    client = APIClient(
        BACKEND_URL,
        conventions=ApiConventions(credential_field="email", identity_field="email"),
        transport=httpx.MockTransport(backend),
    )

    result = asyncio.run(client.login("alice@example.com", "secret"))

    assert result.ok
    assert request_json(backend.requests[0]) == {"email": "alice@example.com", "password": "secret"}


def test_login_rejected_is_bad_request(backend, api_client):
    backend.on("POST", "/api/auth/login", 400, {"status": "fail", "message": "Invalid email or password"})

    result = asyncio.run(api_client.login("alice", "wrong"))

    assert tuple(result) == (HTTPStatus.BAD_REQUEST, None)
    assert not result.ok
    assert result.error.kind is ErrorKind.STATUS
    assert result.error.status_code == 400


def test_login_without_access_token_is_decode_failure(backend, api_client):
    backend.on("POST", "/api/auth/login", 200, {"status": "ok"})

    result = asyncio.run(api_client.login("alice", "secret"))

    assert result.status == HTTPStatus.BAD_REQUEST
    assert result.value is None
    assert result.error.kind is ErrorKind.DECODE


def test_logout_sends_bearer_token(backend, api_client):
    backend.on("GET", "/api/auth/logout", 200, {"status": "success"})

    result = asyncio.run(api_client.logout("abc123"))

    assert result.ok
    assert result.status == HTTPStatus.OK
    assert backend.requests[0].headers["authorization"] == "Bearer abc123"


def test_get_my_details_returns_user(backend, api_client):
    backend.on("GET", "/api/user/me", 200, {"status": "success", "data": {"user": ALICE}})

    status, user = asyncio.run(api_client.get_my_details("abc123"))

    assert status == HTTPStatus.OK
    assert user.id == 5
    assert user.user_name == "alice"
    assert user.display_name == "Alice Runner"
    assert backend.requests[0].headers["authorization"] == "Bearer abc123"


def test_get_my_details_with_expired_token(backend, api_client):
    backend.on("GET", "/api/user/me", 401, {"status": "fail", "message": "Token expired"})

    result = asyncio.run(api_client.get_my_details("stale"))

    assert tuple(result) == (HTTPStatus.BAD_REQUEST, None)
    assert result.error.kind is ErrorKind.STATUS


@pytest.mark.parametrize(
    "body",
    [
        {"status": "success", "data": {"user": {"id": 5, "email": "alice@example.com"}}},
        {"status": "success", "data": {"user": {"id": 5, "user_name": ""}}},
        {"status": "success", "data": {}},
        {"status": "success"},
        [],
    ],
)
def test_get_my_details_without_identity_is_bad_request(backend, api_client, body):
    backend.on("GET", "/api/user/me", 200, body)

    result = asyncio.run(api_client.get_my_details("abc123"))

    assert tuple(result) == (HTTPStatus.BAD_REQUEST, None)
    assert result.error.kind is ErrorKind.DECODE


def test_update_my_details_puts_partial_user(backend, api_client):
    updated = dict(ALICE, first_name="Alicia")
    backend.on("PUT", "/api/user/5", 200, {"status": "success", "data": {"user": updated}})
    changes = UpdateUserRequest(user_name="alice", first_name="Alicia", last_name="Runner", email="alice@example.com")

    status, user = asyncio.run(api_client.update_my_details("abc123", changes, 5))

    assert status == HTTPStatus.OK
    assert user.first_name == "Alicia"
    sent = backend.requests[0]
    assert sent.method == "PUT"
    assert sent.headers["authorization"] == "Bearer abc123"
    assert request_json(sent) == {
        "user_name": "alice",
        "first_name": "Alicia",
        "last_name": "Runner",
        "email": "alice@example.com",
        "phone": None,
    }


def test_update_path_follows_conventions(backend):
    backend.on("PUT", "/api/user/update/5", 200, {"status": "success", "data": {"user": ALICE}})
    client = APIClient(
        BACKEND_URL,
        conventions=ApiConventions(update_user_path="/api/user/update/{id}"),
        transport=httpx.MockTransport(backend),
    )

    result = asyncio.run(client.update_my_details("abc123", UpdateUserRequest(user_name="alice"), 5))

    assert result.ok


def test_create_new_user_returns_created(backend, api_client):
    backend.on("POST", "/api/auth/register", 200, {"status": "success", "Message": "User Created"})
    new_user = NewUserRequest(user_name="bob", first_name="Bob", email="bob@example.com", password="pw")

    status, body = asyncio.run(api_client.create_new_user(new_user))

    assert status == HTTPStatus.CREATED
    assert body == {"status": "success", "Message": "User Created"}
    assert request_json(backend.requests[0])["password"] == "pw"


def test_create_new_user_refused_by_backend(backend, api_client):
    backend.on("POST", "/api/auth/register", 200, {"status": "User Already Exists"})

    result = asyncio.run(api_client.create_new_user(NewUserRequest(user_name="alice")))

    assert tuple(result) == (HTTPStatus.BAD_REQUEST, None)
    assert result.error.kind is ErrorKind.DECODE


def test_get_results_reads_pascal_case_points(backend, api_client):
    backend.on("GET", "/api/world-aths/points/Outdoor/Male/100m", 200, {"points": WORLD_ATHS_ROW})

    result = asyncio.run(api_client.get_results("Outdoor", "Male", "100m", 10.5))

    assert result.ok
    assert result.value == TrackPoints(id=12, category="Outdoor", gender="Male", event="100m", mark=10.5, points=1050)
    assert backend.requests[0].url.params["mark"] == "10.5"
    assert "authorization" not in backend.requests[0].headers


def test_get_results_quotes_path_segments(backend, api_client):
    backend.on("GET", "/api/world-aths/points/Outdoor/Female/4x100m relay", 200, {"points": WORLD_ATHS_ROW})

    asyncio.run(api_client.get_results("Outdoor", "Female", "4x100m relay", 42.0))

    assert backend.requests[0].url.raw_path.startswith(b"/api/world-aths/points/Outdoor/Female/4x100m%20relay")


def test_get_results_without_match_has_no_value(backend, api_client):
    backend.on("GET", "/api/world-aths/points/Indoor/Female/60m", 200, {"points": None})

    result = asyncio.run(api_client.get_results("Indoor", "Female", "60m", 99.0))

    assert result.value is None
    assert result.error.kind is ErrorKind.DECODE


def test_request_user_points_delete(backend, api_client):
    backend.on("DELETE", "/api/user/user_points/5/12", 200, {"user_points": "success"})

    status, body = asyncio.run(api_client.request_user_points("abc123", 5, 12, "DELETE"))

    assert status == HTTPStatus.OK
    assert body == {"user_points": "success"}
    (sent,) = backend.requests
    assert sent.method == "DELETE"
    assert sent.url.path == "/api/user/user_points/5/12"
    assert sent.headers["authorization"] == "Bearer abc123"


def test_request_user_points_failure(backend, api_client):
    backend.on("POST", "/api/user/user_points/5/12", 500, {"status": "error", "message": "Database error"})

    result = asyncio.run(api_client.add_user_points("abc123", 5, 12))

    assert tuple(result) == (HTTPStatus.BAD_REQUEST, None)
    assert result.error.status_code == 500


def test_request_user_points_rejects_other_verbs(api_client, backend):
    with pytest.raises(ValueError):
        asyncio.run(api_client.request_user_points("abc123", 5, 12, "PUT"))
    assert backend.requests == []


def test_get_my_points_lists_records(backend, api_client):
    backend.on("GET", "/api/user/user_points/5", 200, {"user_points": [WORLD_ATHS_ROW, dict(WORLD_ATHS_ROW, Id=13)]})

    status, records = asyncio.run(api_client.get_my_points("abc123", 5))

    assert status == HTTPStatus.OK
    assert [r.id for r in records] == [12, 13]
    assert backend.requests[0].headers["authorization"] == "Bearer abc123"


def test_get_my_points_empty_and_failed_are_both_lists(backend, api_client):
    backend.on("GET", "/api/user/user_points/5", 200, {"user_points": []})
    backend.on("GET", "/api/user/user_points/6", 500, {"status": "error"})

    empty = asyncio.run(api_client.get_my_points("abc123", 5))
    failed = asyncio.run(api_client.get_my_points("abc123", 6))

    assert empty.ok and empty.value == []
    assert not failed.ok and failed.value == []


def test_non_json_body_is_decode_failure(backend, api_client):
    backend.on_call("GET", "/api/user/me", lambda request: httpx.Response(200, text="<html>oops</html>"))

    result = asyncio.run(api_client.get_my_details("abc123"))

    assert result.status == HTTPStatus.BAD_REQUEST
    assert result.error.kind is ErrorKind.DECODE


CALLS = [
    ("login", lambda c: c.login("alice", "secret"), None),
    ("logout", lambda c: c.logout("abc123"), None),
    ("get_my_details", lambda c: c.get_my_details("abc123"), None),
    ("update_my_details", lambda c: c.update_my_details("abc123", UpdateUserRequest(), 5), None),
    ("create_new_user", lambda c: c.create_new_user(NewUserRequest()), None),
    ("get_results", lambda c: c.get_results("Outdoor", "Male", "100m", 10.5), None),
    ("request_user_points", lambda c: c.request_user_points("abc123", 5, 12, "POST"), None),
    ("get_my_points", lambda c: c.get_my_points("abc123", 5), []),
    ("load_points_data", lambda c: c.load_points_data(), None),
    ("check_health", lambda c: c.check_health(), None),
]


@pytest.mark.parametrize("name,call,expected", CALLS, ids=[c[0] for c in CALLS])
def test_server_errors_fold_into_failure_value(name, call, expected):
    client = APIClient(BACKEND_URL, transport=httpx.MockTransport(lambda request: httpx.Response(503)))

    result = asyncio.run(call(client))

    assert result.status == HTTPStatus.BAD_REQUEST
    assert result.value == expected
    assert result.error.kind is ErrorKind.STATUS


@pytest.mark.parametrize("name,call,expected", CALLS, ids=[c[0] for c in CALLS])
def test_transport_errors_fold_into_failure_value(name, call, expected):
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = APIClient(BACKEND_URL, transport=httpx.MockTransport(refuse))

    result = asyncio.run(call(client))

    assert result.status == HTTPStatus.BAD_REQUEST
    assert result.value == expected
    assert result.error.kind is ErrorKind.TRANSPORT


def test_timeout_is_transport_failure():
    def hang(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = APIClient(BACKEND_URL, transport=httpx.MockTransport(hang))

    result = asyncio.run(client.get_my_details("abc123"))

    assert tuple(result) == (HTTPStatus.BAD_REQUEST, None)
    assert result.error.kind is ErrorKind.TRANSPORT
