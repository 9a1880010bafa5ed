import json
import os
import sys
from pathlib import Path
from typing import Any, Callable, Union

import httpx
import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("API_BASE_URL", "http://backend.test")

from trackweb import create_app
from trackweb.core.config import AppSettings
from trackweb.services.api_client import APIClient

BACKEND_URL = "http://backend.test"

ALICE = {
    "id": 5,
    "user_name": "alice",
    "first_name": "Alice",
    "last_name": "Runner",
    "email": "alice@example.com",
    "phone": "555-0100",
    "active": True,
}

Reply = Union[tuple, Callable[[httpx.Request], httpx.Response]]


class FakeBackend:
    """Routes ``(method, path)`` to canned replies and records every request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Reply] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, status_code: int = 200, body: Any = None) -> None:
        self.routes[(method, path)] = (status_code, body)

    def on_call(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, path)] = handler

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, json={"status": "Not Found"})
        if callable(reply):
            return reply(request)
        status_code, body = reply
        if body is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=body)


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content)


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def api_client(backend: FakeBackend) -> APIClient:
    return APIClient(BACKEND_URL, transport=httpx.MockTransport(backend))


def build_settings(**overrides: Any) -> AppSettings:
    values = {"API_BASE_URL": BACKEND_URL}
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


@pytest.fixture()
def app_settings() -> AppSettings:
    return build_settings()


@pytest.fixture()
def web(app_settings: AppSettings, api_client: APIClient) -> TestClient:
    app = create_app(app_settings, api_client=api_client)
    with TestClient(app, headers={"Accept": "text/html"}) as client:
        yield client


@pytest.fixture()
def logged_in(web: TestClient, backend: FakeBackend) -> TestClient:
    backend.on("GET", "/api/user/me", 200, {"status": "success", "data": {"user": ALICE}})
    web.cookies.set("session", "abc123")
    return web
