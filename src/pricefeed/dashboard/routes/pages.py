"""Page routes serving the main dashboard HTML template."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from pricefeed.dashboard.presenters import build_dashboard_context

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def dashboard_index(request: Request) -> HTMLResponse:
    """Main dashboard page: status panel plus one card per tracked feed."""
    templates: Jinja2Templates = request.app.state.templates
    context = build_dashboard_context(request.app.state.feed_client)
    return templates.TemplateResponse(request, "index.html", context)
