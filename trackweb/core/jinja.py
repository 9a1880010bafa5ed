"""Jinja2 templates environment with the formatting filters the pages use."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates


def _fmt_mark(value: Any) -> str:
    # Marks are seconds for track events and metres for field events.
    try:
        return f"{float(value):.2f}"
    except (TypeError, ValueError):
        return ""


def _fmt_points(value: Any) -> str:
    try:
        return f"{int(value):,}"
    except (TypeError, ValueError):
        return ""


def get_templates(directory: Path) -> Jinja2Templates:
    """Create a ``Jinja2Templates`` instance with our standard filters registered."""

    templates = Jinja2Templates(directory=str(directory))
    env = templates.env
    env.filters["fmt_mark"] = _fmt_mark
    env.filters["fmt_points"] = _fmt_points
    return templates


def render(request: Request, name: str, context: dict[str, Any] | None = None, *, status_code: int = 200):
    """Render ``name`` with the current user and app name always in scope."""

    page = {
        "app_name": request.app.state.settings.APP_NAME,
        "ctx": getattr(request.state, "context", None),
    }
    page.update(context or {})
    return request.app.state.templates.TemplateResponse(request, name, page, status_code=status_code)
