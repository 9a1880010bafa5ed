"""Form handlers: read the submitted fields, make one backend call, report.

Missing fields are read as empty strings; validation is the backend's job.
Routers turn an ``ActionResult`` into either a redirect or a re-rendered
form carrying ``error``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..deps.session import RequestContext
from ..schemas.user import NewUserRequest, UpdateUserRequest, User
from .api_client import APIClient, ApiError, ErrorKind

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("user_name", "first_name", "last_name", "email", "phone")


@dataclass
class ActionResult:
    ok: bool
    redirect_to: str = "/"
    error: Optional[str] = None
    token: Optional[str] = None
    user: Optional[User] = None
    values: dict[str, str] = field(default_factory=dict)


def form_value(form: Mapping[str, Any], name: str) -> str:
    value = form.get(name)
    return value if isinstance(value, str) else ""


def describe_failure(error: Optional[ApiError], rejected: str) -> str:
    if error is None:
        return rejected
    if error.kind is ErrorKind.TRANSPORT:
        return "The scoring service could not be reached. Please try again."
    if error.kind is ErrorKind.STATUS and error.status_code is not None and error.status_code >= 500:
        return "The scoring service failed to handle the request."
    return rejected


def _failure(message: str, values: dict[str, str], redirect_to: str = "/") -> ActionResult:
    return ActionResult(ok=False, redirect_to=redirect_to, error=message, values=values)


async def login_action(client: APIClient, form: Mapping[str, Any]) -> ActionResult:
    credential_field = client.conventions.credential_field
    credential = form_value(form, credential_field)
    password = form_value(form, "password")
    values = {credential_field: credential}

    result = await client.login(credential, password)
    if not result.ok or result.value is None:
        return _failure(describe_failure(result.error, "Invalid credentials."), values)

    logger.info("login.succeeded", extra={"extra_data": {"credential_field": credential_field}})
    return ActionResult(ok=True, redirect_to="/", token=result.value.access_token, values=values)


async def register_action(client: APIClient, form: Mapping[str, Any]) -> ActionResult:
    values = {name: form_value(form, name) for name in PROFILE_FIELDS}
    new_user = NewUserRequest(**values, password=form_value(form, "password"))

    result = await client.create_new_user(new_user)
    if not result.ok:
        return _failure(describe_failure(result.error, "Registration was refused."), values)
    return ActionResult(ok=True, redirect_to="/login", values=values)


async def update_profile_action(
    client: APIClient, form: Mapping[str, Any], context: RequestContext
) -> ActionResult:
    values = {name: form_value(form, name) for name in PROFILE_FIELDS}
    if context.user is None or context.token is None:
        return _failure("Login required.", values, redirect_to="/login")

    changes = UpdateUserRequest(**{**values, "phone": values["phone"] or None})
    result = await client.update_my_details(context.token, changes, context.user.id)
    if not result.ok or result.value is None:
        return _failure(describe_failure(result.error, "Your details could not be updated."), values)

    context.user = result.value
    return ActionResult(ok=True, redirect_to="/user", user=result.value, values=values)


async def _change_points(
    client: APIClient, form: Mapping[str, Any], context: RequestContext, method: str
) -> ActionResult:
    raw_id = form_value(form, "points_id")
    values = {"points_id": raw_id}
    if context.user is None or context.token is None:
        return _failure("Login required.", values, redirect_to="/login")
    try:
        points_id = int(raw_id)
    except ValueError:
        return _failure("Choose a points record first.", values)

    result = await client.request_user_points(context.token, context.user.id, points_id, method)  # type: ignore[arg-type]
    if not result.ok:
        verb = "saved" if method == "POST" else "removed"
        return _failure(describe_failure(result.error, f"The points record could not be {verb}."), values)
    return ActionResult(ok=True, redirect_to="/points/mine", user=context.user, values=values)


async def add_points_action(client: APIClient, form: Mapping[str, Any], context: RequestContext) -> ActionResult:
    return await _change_points(client, form, context, "POST")


async def remove_points_action(client: APIClient, form: Mapping[str, Any], context: RequestContext) -> ActionResult:
    return await _change_points(client, form, context, "DELETE")
