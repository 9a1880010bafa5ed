"""Session cookie handling and the per-request user context.

The browser holds a single opaque access token in the session cookie. The
server never decodes it: it is forwarded to the backend as a bearer
credential and the resolved user lives on ``request.state.context`` for the
rest of the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request, status
from starlette.responses import Response

from ..core.config import AppSettings
from ..schemas.user import User
from ..services.api_client import APIClient


@dataclass
class RequestContext:
    user: Optional[User] = None
    token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_api_client(request: Request) -> APIClient:
    return request.app.state.api_client


def read_session_token(request: Request, cookie_name: str) -> str | None:
    token = request.cookies.get(cookie_name)
    return token or None


def set_session_cookie(response: Response, token: str, settings: AppSettings) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_MAX_AGE,
        path="/",
        httponly=settings.SESSION_COOKIE_HTTPONLY,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
    )


def clear_session_cookie(response: Response, settings: AppSettings) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=settings.SESSION_COOKIE_HTTPONLY,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
    )


def get_context(request: Request) -> RequestContext:
    """Return the context attached by the session gate (anonymous if none)."""

    context = getattr(request.state, "context", None)
    if context is None:
        context = RequestContext()
        request.state.context = context
    return context


async def require_user(request: Request) -> RequestContext:
    """
    Gate for pages that need a logged-in user. Raises 401; the app's
    exception handler turns that into a /login redirect for browsers.
    """
    context = get_context(request)
    if not context.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    return context
