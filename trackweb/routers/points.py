from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from ..core.jinja import render
from ..deps.session import RequestContext, get_api_client, require_user
from ..schemas.points import CATEGORIES, GENDERS, PointsQuery
from ..services.actions import ActionResult, add_points_action, describe_failure, remove_points_action
from ..services.api_client import APIClient

router = APIRouter(prefix="/points", tags=["points"])

NO_MATCH = "No score found for that mark."


@router.get("", response_class=HTMLResponse)
async def points_page(
    request: Request,
    category: Optional[str] = None,
    gender: Optional[str] = None,
    event: Optional[str] = None,
    mark: Optional[str] = None,
    client: APIClient = Depends(get_api_client),
):
    values = {"category": category or "", "gender": gender or "", "event": event or "", "mark": mark or ""}
    context = {"categories": CATEGORIES, "genders": GENDERS, "values": values, "result": None, "error": ""}
    if not any(values.values()):
        return render(request, "points.html", context)

    try:
        query = PointsQuery.model_validate(values)
    except ValidationError:
        context["error"] = "Pick a category and gender, name the event and enter a positive mark."
        return render(request, "points.html", context, status_code=400)

    result = await client.get_results(query.category, query.gender, query.event, query.mark)
    context["result"] = result.value
    if result.ok:
        return render(request, "points.html", context)
    message = describe_failure(result.error, NO_MATCH)
    context["error"] = message
    # A missing row is a normal answer; an outage is not.
    return render(request, "points.html", context, status_code=200 if message == NO_MATCH else 502)


async def _my_points_page(
    request: Request,
    context: RequestContext,
    client: APIClient,
    *,
    error: str = "",
    status_code: int = 200,
):
    # ``require_user`` guarantees both user and token.
    result = await client.get_my_points(context.token or "", context.user.id)  # type: ignore[union-attr]
    if not result.ok and not error:
        error = "Your saved points could not be loaded."
    return render(
        request,
        "my_points.html",
        {"records": result.value or [], "error": error},
        status_code=status_code,
    )


@router.get("/mine", response_class=HTMLResponse)
async def my_points(
    request: Request,
    context: RequestContext = Depends(require_user),
    client: APIClient = Depends(get_api_client),
):
    return await _my_points_page(request, context, client)


async def _respond(request: Request, result: ActionResult, context: RequestContext, client: APIClient):
    if result.ok:
        return RedirectResponse(url=result.redirect_to, status_code=303)
    return await _my_points_page(request, context, client, error=result.error or "", status_code=400)


@router.post("/mine/add", response_class=HTMLResponse)
async def add_points(
    request: Request,
    context: RequestContext = Depends(require_user),
    client: APIClient = Depends(get_api_client),
):
    result = await add_points_action(client, await request.form(), context)
    return await _respond(request, result, context, client)


@router.post("/mine/remove", response_class=HTMLResponse)
async def remove_points(
    request: Request,
    context: RequestContext = Depends(require_user),
    client: APIClient = Depends(get_api_client),
):
    result = await remove_points_action(client, await request.form(), context)
    return await _respond(request, result, context, client)
