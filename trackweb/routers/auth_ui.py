"""Login, registration and logout pages.

Successful submissions redirect (303, so the browser follows with a GET);
failed ones re-render the form with the backend's verdict and a 400.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ..core.config import AppSettings
from ..core.jinja import render
from ..deps.session import (
    clear_session_cookie,
    get_api_client,
    get_app_settings,
    get_context,
    read_session_token,
    set_session_cookie,
)
from ..services.actions import form_value, login_action, register_action
from ..services.api_client import APIClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _safe_next(target: str | None) -> str:
    # Only same-site paths; "//host" would be protocol-relative.
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return "/"


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, next: str = "/"):
    if get_context(request).is_authenticated:
        return RedirectResponse(url=_safe_next(next), status_code=303)
    client: APIClient = request.app.state.api_client
    return render(
        request,
        "login.html",
        {"next": _safe_next(next), "credential_field": client.conventions.credential_field, "error": "", "values": {}},
    )


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    client: APIClient = Depends(get_api_client),
    settings: AppSettings = Depends(get_app_settings),
):
    form = await request.form()
    next_url = _safe_next(form_value(form, "next"))
    result = await login_action(client, form)
    if not result.ok or not result.token:
        return render(
            request,
            "login.html",
            {
                "next": next_url,
                "credential_field": client.conventions.credential_field,
                "error": result.error,
                "values": result.values,
            },
            status_code=400,
        )
    response = RedirectResponse(url=next_url, status_code=303)
    set_session_cookie(response, result.token, settings)
    return response


@router.get("/register", response_class=HTMLResponse)
def register_page(request: Request):
    return render(request, "register.html", {"error": "", "values": {}})


@router.post("/register", response_class=HTMLResponse)
async def register_submit(request: Request, client: APIClient = Depends(get_api_client)):
    form = await request.form()
    result = await register_action(client, form)
    if not result.ok:
        return render(request, "register.html", {"error": result.error, "values": result.values}, status_code=400)
    return RedirectResponse(url=result.redirect_to, status_code=303)


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(
    request: Request,
    client: APIClient = Depends(get_api_client),
    settings: AppSettings = Depends(get_app_settings),
):
    token = read_session_token(request, settings.SESSION_COOKIE_NAME)
    if token:
        result = await client.logout(token)
        if not result.ok:
            # The cookie goes regardless; the backend token simply expires.
            logger.info("logout.backend_failed")
    response = RedirectResponse(url="/", status_code=303)
    clear_session_cookie(response, settings)
    return response
