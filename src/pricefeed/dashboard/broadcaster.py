"""Push re-rendered dashboard partials to WebSocket clients on every client update.

Subscribed to the FeedClient, so browsers re-render right after each poll
instead of on a separate timer. Fragments are wrapped in out-of-band swap
divs that htmx places by id.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from pricefeed.dashboard.presenters import build_dashboard_context
from pricefeed.models import ClientSnapshot

log = structlog.get_logger(__name__)

# (template, target element id)
PARTIALS = (
    ("partials/status_panel.html", "status-panel"),
    ("partials/price_cards.html", "price-cards"),
)


def render_fragments(templates: Jinja2Templates, context: dict[str, Any]) -> str:
    """Render every partial and concatenate them as OOB swap fragments."""
    fragments = []
    for template_name, target_id in PARTIALS:
        html = templates.env.get_template(template_name).render(**context)
        fragments.append(f'<div id="{target_id}" hx-swap-oob="innerHTML">{html}</div>')
    return "".join(fragments)


def render_snapshot(app: FastAPI, snapshot: ClientSnapshot | None = None) -> str:
    """OOB fragments for a snapshot, or for the client's current state."""
    context = build_dashboard_context(app.state.feed_client, snapshot=snapshot)
    return render_fragments(app.state.templates, context)


def make_broadcast_listener(app: FastAPI) -> Callable[[ClientSnapshot], Awaitable[None]]:
    """Build a FeedClient listener that broadcasts the rendered snapshot."""

    async def broadcast(snapshot: ClientSnapshot) -> None:
        hub = app.state.hub
        if not hub.connections:
            return
        delivered = await hub.broadcast(render_snapshot(app, snapshot))
        log.debug("dashboard_snapshot_broadcast", clients=delivered)

    return broadcast
