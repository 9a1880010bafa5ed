from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from ..core.jinja import render

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
def index_page(request: Request):
    return render(request, "index.html")
