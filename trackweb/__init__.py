"""Application factory and top-level wiring for the Trackweb frontend.

The frontend owns no data: every page is rendered from calls to the
athletics backend through one shared ``APIClient``. This module brings the
pieces together: settings, templates, static files, the middlewares (access
log, security headers, the session gate), the page routers and the error
handlers.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import AppSettings, get_settings
from .core.errors import http_exception_handler, validation_exception_handler
from .core.jinja import get_templates
from .middlewares import AccessLogMiddleware, SecurityHeadersMiddleware, SessionGateMiddleware
from .routers import auth_ui as auth_ui_router
from .routers import points as points_router
from .routers import ui as ui_router
from .routers import user as user_router
from .services.api_client import APIClient


def create_app(settings: AppSettings | None = None, api_client: APIClient | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.APP_NAME)

    # Shared, immutable per process; nothing request-specific lives here.
    app.state.settings = settings
    app.state.api_client = api_client or APIClient.from_settings(settings)
    app.state.templates = get_templates(settings.templates_dir)

    app.mount("/static", StaticFiles(directory=str(settings.static_dir)), name="static")

    # Added innermost first: the access log wraps everything, the gate runs
    # closest to the routes.
    app.add_middleware(SessionGateMiddleware, settings=settings)
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.SESSION_COOKIE_SECURE)
    app.add_middleware(AccessLogMiddleware)

    app.include_router(ui_router.router)
    app.include_router(auth_ui_router.router)
    app.include_router(user_router.router)
    app.include_router(points_router.router)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    return app


__all__ = ["create_app"]
