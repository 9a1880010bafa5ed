from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ..core.jinja import render
from ..deps.session import RequestContext, get_api_client, require_user
from ..services.actions import PROFILE_FIELDS, update_profile_action
from ..services.api_client import APIClient

router = APIRouter(prefix="/user", tags=["user"])


def _profile_values(context: RequestContext) -> dict[str, str]:
    user = context.user
    if user is None:
        return {}
    return {name: getattr(user, name) or "" for name in PROFILE_FIELDS}


@router.get("", response_class=HTMLResponse)
def profile_page(request: Request, context: RequestContext = Depends(require_user), saved: bool = False):
    return render(
        request,
        "user.html",
        {"values": _profile_values(context), "error": "", "saved": saved},
    )


@router.post("", response_class=HTMLResponse)
async def profile_submit(
    request: Request,
    context: RequestContext = Depends(require_user),
    client: APIClient = Depends(get_api_client),
):
    form = await request.form()
    result = await update_profile_action(client, form, context)
    if not result.ok:
        return render(request, "user.html", {"values": result.values, "error": result.error, "saved": False}, status_code=400)
    return RedirectResponse(url=f"{result.redirect_to}?saved=1", status_code=303)
