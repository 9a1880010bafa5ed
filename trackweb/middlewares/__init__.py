from __future__ import annotations

from .access_log import AccessLogMiddleware, principal_ctx_var, request_id_ctx_var
from .security_headers import SecurityHeadersMiddleware
from .session_gate import SessionGateMiddleware

__all__ = [
    "AccessLogMiddleware",
    "SecurityHeadersMiddleware",
    "SessionGateMiddleware",
    "request_id_ctx_var",
    "principal_ctx_var",
]
