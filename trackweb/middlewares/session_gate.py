from __future__ import annotations

import logging
from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from ..core.config import AppSettings
from ..deps.session import RequestContext, read_session_token
from .access_log import principal_ctx_var

logger = logging.getLogger("trackweb.session")

LOGIN_PATH = "/login"


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Resolve the session cookie into a ``RequestContext`` before routing.

    A missing or rejected token never fails the request: it simply proceeds
    anonymously. In ``protect`` mode, requests without a cookie are sent to
    the login page unless the path is listed as unprotected.
    """

    def __init__(  # type: ignore[override]
        self,
        app,
        *,
        settings: AppSettings,
        bypass_prefixes: Iterable[str] = ("/static", "/health", "/metrics"),
    ) -> None:
        super().__init__(app)
        self.settings = settings
        self.bypass_prefixes = tuple(bypass_prefixes)
        self.unprotected = set(settings.UNPROTECTED_PATHS) | {LOGIN_PATH}

    def _is_protected(self, path: str) -> bool:
        return self.settings.GATE_MODE == "protect" and path not in self.unprotected

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        context = RequestContext()
        request.state.context = context
        path = request.url.path
        if path.startswith(self.bypass_prefixes):
            return await call_next(request)

        token = read_session_token(request, self.settings.SESSION_COOKIE_NAME)
        if token is None:
            if self._is_protected(path):
                logger.debug("No session cookie for protected path %s", path)
                return RedirectResponse(url=LOGIN_PATH, status_code=303)
            return await call_next(request)

        result = await request.app.state.api_client.get_my_details(token)
        if result.ok and result.value is not None:
            context.user = result.value
            context.token = token
            principal = f"user:{result.value.id}"
            request.state.principal = principal
            principal_ctx_var.set(principal)
        else:
            # Expired or revoked token: keep the cookie, serve the page anonymously.
            logger.info(
                "session.anonymous",
                extra={"extra_data": {"path": path, "reason": result.error.kind.value if result.error else None}},
            )
        return await call_next(request)
