from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from ..middlewares import principal_ctx_var, request_id_ctx_var

# Loggers whose INFO output duplicates the access log or the API client.
NOISY_LOGGERS = ("httpx", "uvicorn.access")


def _request_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    request_id = request_id_ctx_var.get()
    if request_id:
        fields["request_id"] = request_id
    principal = principal_ctx_var.get()
    if principal:
        fields["principal"] = principal
    extra = getattr(record, "extra_data", None)
    if isinstance(extra, Mapping):
        fields.update(extra)
    return fields


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_request_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


class TextLogFormatter(logging.Formatter):
    """Human-readable lines for local development: ``key=value`` after the message."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _request_fields(record)
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


def configure_logging(level: str | int = logging.INFO, fmt: str = "json") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(TextLogFormatter() if fmt == "text" else JsonLogFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
