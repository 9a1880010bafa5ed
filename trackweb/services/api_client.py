"""Typed wrapper around the athletics backend REST API.

Every public coroutine performs a single round trip and returns an
``ApiResult``. Transport errors, non-2xx responses and bodies that do not
match the expected schema are logged here and folded into a failed result;
nothing escapes the method boundary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from typing import Any, Callable, Generic, Iterator, Literal, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from ..core.config import AppSettings
from ..schemas.auth import AccessToken
from ..schemas.points import TrackPoints
from ..schemas.user import NewUserRequest, UpdateUserRequest, User

logger = logging.getLogger(__name__)

T = TypeVar("T")

PointsMethod = Literal["POST", "DELETE"]

_TRACK_POINTS_LIST = TypeAdapter(list[TrackPoints])
_SUCCESS_STATUSES = {"success", "ok"}


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    STATUS = "status"
    DECODE = "decode"


@dataclass(frozen=True)
class ApiError:
    kind: ErrorKind
    message: str
    status_code: Optional[int] = None


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Outcome of one backend call.

    Unpacks like the ``(status, value)`` pair callers historically used::

        status, user = await client.get_my_details(token)
    """

    status: HTTPStatus
    value: Optional[T] = None
    error: Optional[ApiError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __iter__(self) -> Iterator[Any]:
        yield self.status
        yield self.value


@dataclass(frozen=True)
class ApiConventions:
    """Field names and paths that differ between backend deployments."""

    credential_field: str = "user_name"
    identity_field: str = "user_name"
    login_path: str = "/api/auth/login"
    logout_path: str = "/api/auth/logout"
    me_path: str = "/api/user/me"
    update_user_path: str = "/api/user/{id}"
    register_path: str = "/api/auth/register"
    user_points_path: str = "/api/user/user_points"
    points_prefix: str = "/api/world-aths"
    health_path: str = "/api/health_check/check"

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ApiConventions":
        return cls(
            credential_field=settings.API_CREDENTIAL_FIELD,
            identity_field=settings.API_CREDENTIAL_FIELD,
            update_user_path=settings.API_UPDATE_USER_PATH,
            register_path=settings.API_REGISTER_PATH,
            points_prefix=settings.API_POINTS_PREFIX.rstrip("/"),
        )


class ApiClientError(Exception):
    """Internal carrier for an ``ApiError``; never raised to callers."""

    def __init__(self, error: ApiError) -> None:
        super().__init__(error.message)
        self.error = error


def _decode_error(message: str) -> ApiClientError:
    return ApiClientError(ApiError(ErrorKind.DECODE, message))


def _dig(body: Any, *keys: str) -> Any:
    current = body
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


def _raise_for_status(response: httpx.Response, context: str) -> None:
    if response.is_success:
        return
    code = response.status_code
    if code in {401, 403}:
        logger.warning("Backend rejected credentials for %s (%s)", context, code)
    elif code >= 500:
        logger.error("Backend error %s during %s", code, context)
    else:
        logger.error("Backend request error %s during %s", code, context)
    message = f"{context}: {code} {response.reason_phrase}".strip()
    raise ApiClientError(ApiError(ErrorKind.STATUS, message, status_code=code))


class APIClient:
    def __init__(
        self,
        base_url: str,
        *,
        conventions: ApiConventions | None = None,
        timeout: float | None = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.conventions = conventions or ApiConventions()
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: AppSettings, **kwargs: Any) -> "APIClient":
        return cls(
            settings.API_BASE_URL,
            conventions=ApiConventions.from_settings(settings),
            timeout=settings.API_TIMEOUT,
            **kwargs,
        )

    # ------------------------------------------------------------------ plumbing

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        context: str,
        token: str | None = None,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"Accept": "application/json"}
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        try:
            async with self._client() as client:
                response = await client.request(method, path, headers=headers, json=json, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ApiClientError(ApiError(ErrorKind.TRANSPORT, f"{context}: {exc!r}")) from exc

        _raise_for_status(response, context)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise _decode_error(f"{context}: response body is not JSON") from exc

    async def _call(
        self,
        context: str,
        method: str,
        path: str,
        parse: Callable[[Any], T],
        *,
        success_status: HTTPStatus = HTTPStatus.OK,
        failure_value: Optional[T] = None,
        **kwargs: Any,
    ) -> ApiResult[T]:
        try:
            body = await self._request(method, path, context=context, **kwargs)
            value = parse(body)
        except ApiClientError as exc:
            error = exc.error
        except ValidationError as exc:
            error = ApiError(ErrorKind.DECODE, f"{context}: {exc.error_count()} invalid field(s) in response")
        else:
            return ApiResult(success_status, value)

        if error.kind is ErrorKind.TRANSPORT:
            logger.error("Backend unreachable: %s", error.message)
        elif error.kind is ErrorKind.DECODE:
            logger.warning("Unexpected backend response: %s", error.message)
        return ApiResult(HTTPStatus.BAD_REQUEST, failure_value, error)

    # ------------------------------------------------------------------ auth

    async def login(self, credential: str, password: str) -> ApiResult[AccessToken]:
        payload = {self.conventions.credential_field: credential, "password": password}
        return await self._call(
            "login",
            "POST",
            self.conventions.login_path,
            AccessToken.model_validate,
            json=payload,
        )

    async def logout(self, token: str) -> ApiResult[None]:
        return await self._call(
            "logout",
            "GET",
            self.conventions.logout_path,
            lambda _body: None,
            token=token,
        )

    # ------------------------------------------------------------------ users

    def _parse_user(self, body: Any) -> User:
        user = _dig(body, "data", "user")
        field = self.conventions.identity_field
        if not isinstance(user, dict) or not user.get(field):
            raise _decode_error(f"response has no user {field}")
        return User.model_validate(user)

    async def get_my_details(self, token: str) -> ApiResult[User]:
        return await self._call(
            "get my details",
            "GET",
            self.conventions.me_path,
            self._parse_user,
            token=token,
        )

    async def update_my_details(self, token: str, my_details: UpdateUserRequest, id: int) -> ApiResult[User]:
        path = self.conventions.update_user_path.format(id=_segment(id))
        return await self._call(
            "update my details",
            "PUT",
            path,
            self._parse_user,
            token=token,
            json=my_details.model_dump(),
        )

    async def create_new_user(self, new_user: NewUserRequest) -> ApiResult[Any]:
        def parse(body: Any) -> Any:
            status = _dig(body, "status")
            if isinstance(status, str) and status.lower() not in _SUCCESS_STATUSES:
                raise _decode_error(f"registration refused: {status}")
            return body

        return await self._call(
            "create new user",
            "POST",
            self.conventions.register_path,
            parse,
            success_status=HTTPStatus.CREATED,
            json=new_user.model_dump(),
        )

    # ------------------------------------------------------------------ points

    async def get_results(self, category: str, gender: str, event: str, mark: float) -> ApiResult[TrackPoints]:
        def parse(body: Any) -> TrackPoints:
            points = _dig(body, "points")
            if points is None:
                raise _decode_error("no points record matches the query")
            return TrackPoints.model_validate(points)

        path = "/".join(
            [self.conventions.points_prefix, "points", _segment(category), _segment(gender), _segment(event)]
        )
        logger.debug("Looking up points for %s/%s/%s mark=%s", category, gender, event, mark)
        return await self._call("get results", "GET", path, parse, params={"mark": mark})

    async def load_points_data(self) -> ApiResult[Any]:
        return await self._call(
            "load points data",
            "GET",
            f"{self.conventions.points_prefix}/read",
            lambda body: body,
        )

    async def request_user_points(
        self,
        token: str,
        user_id: int,
        points_id: int,
        method: PointsMethod = "POST",
    ) -> ApiResult[Any]:
        verb = method.upper()
        if verb not in ("POST", "DELETE"):
            raise ValueError(f"user points requests must be POST or DELETE, not {method!r}")
        path = f"{self.conventions.user_points_path}/{_segment(user_id)}/{_segment(points_id)}"
        context = "add user points" if verb == "POST" else "remove user points"
        return await self._call(context, verb, path, lambda body: body, token=token)

    async def add_user_points(self, token: str, user_id: int, points_id: int) -> ApiResult[Any]:
        return await self.request_user_points(token, user_id, points_id, "POST")

    async def remove_user_points(self, token: str, user_id: int, points_id: int) -> ApiResult[Any]:
        return await self.request_user_points(token, user_id, points_id, "DELETE")

    async def get_my_points(self, token: str, user_id: int) -> ApiResult[list[TrackPoints]]:
        def parse(body: Any) -> list[TrackPoints]:
            records = _dig(body, "user_points")
            if records is None:
                return []
            return _TRACK_POINTS_LIST.validate_python(records)

        return await self._call(
            "get my points",
            "GET",
            f"{self.conventions.user_points_path}/{_segment(user_id)}",
            parse,
            failure_value=[],
            token=token,
        )

    # ------------------------------------------------------------------ misc

    async def check_health(self) -> ApiResult[Any]:
        return await self._call("health check", "GET", self.conventions.health_path, lambda body: body)
