"""FastAPI dashboard application factory with Jinja2 templates and WebSocket hub."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from pricefeed.dashboard import presenters
from pricefeed.dashboard.routes import actions, api, pages, ws
from pricefeed.dashboard.routes.ws import DashboardHub

TEMPLATES_DIR = Path(__file__).parent / "templates"


def create_templates() -> Jinja2Templates:
    """Jinja2 environment with the dashboard's formatting filters registered."""
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.filters["format_price"] = presenters.format_price
    templates.env.filters["format_confidence"] = presenters.format_confidence
    templates.env.filters["format_percent"] = presenters.format_percent
    templates.env.filters["format_age"] = presenters.format_age
    templates.env.filters["short_feed_id"] = presenters.short_feed_id
    templates.env.filters["change_tone"] = presenters.change_tone
    return templates


def create_dashboard_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI dashboard application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to start and stop the feed client.

    Returns:
        Configured FastAPI application. Route handlers expect
        ``app.state.feed_client`` to be set before the first request.
    """
    app = FastAPI(
        title="Oracle Price Feeds Dashboard",
        lifespan=lifespan,
    )

    app.state.templates = create_templates()
    app.state.hub = DashboardHub()

    app.include_router(pages.router)
    app.include_router(api.router, prefix="/api")
    app.include_router(actions.router, prefix="/actions")
    app.include_router(ws.router)

    return app
