"""POST endpoints for manual dashboard actions."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from pricefeed.dashboard.presenters import build_dashboard_context

log = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/refresh", response_class=HTMLResponse)
async def refresh_prices(request: Request) -> HTMLResponse:
    """Poll immediately and return the updated status_panel.html partial.

    Price cards are updated by the WebSocket broadcast that follows the poll.
    """
    templates: Jinja2Templates = request.app.state.templates
    client = request.app.state.feed_client

    snapshot = await client.refresh()
    log.info(
        "refresh_requested_via_dashboard",
        connected=snapshot.is_connected,
        retry_count=snapshot.retry_count,
    )

    context = build_dashboard_context(client, snapshot=snapshot)
    return templates.TemplateResponse(request, "partials/status_panel.html", context)
