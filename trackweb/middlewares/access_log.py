from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from typing import Iterable
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_ctx_var: ContextVar[str | None] = ContextVar("principal_id", default=None)
logger = logging.getLogger("trackweb.access")


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation id and log one line per page served.

    Asset, health and metrics requests still get the id header but are not
    logged. The line records whether the session gate recognised a user.
    """

    def __init__(  # type: ignore[override]
        self,
        app,
        header_name: str = "X-Request-ID",
        quiet_prefixes: Iterable[str] = ("/static", "/health", "/metrics"),
    ) -> None:
        super().__init__(app)
        self.header_name = header_name
        self.quiet_prefixes = tuple(quiet_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self.header_name) or uuid4().hex
        id_token = request_id_ctx_var.set(request_id)
        principal_token = principal_ctx_var.set(None)
        request.state.request_id = request_id
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(id_token)
            principal_ctx_var.reset(principal_token)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[self.header_name] = request_id

        path = request.url.path
        if path.startswith(self.quiet_prefixes):
            return response
        context = getattr(request.state, "context", None)
        fields = {
            "request_id": request_id,
            "method": request.method,
            "path": path,
            "status": response.status_code,
            "duration_ms": elapsed_ms,
            "authenticated": bool(context and context.is_authenticated),
        }
        principal = getattr(request.state, "principal", None)
        if principal:
            fields["principal"] = principal
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(level, "page.served", extra={"extra_data": fields})
        return response
