"""Entry point for the oracle price feed dashboard.

Wires settings, logging, the Hermes client and the feed client together.
When the dashboard is enabled (default) the feed client and the web server
share one asyncio event loop via uvicorn's programmatic API and FastAPI's
lifespan context manager. With the dashboard disabled the client runs
headless and logs every update until SIGINT/SIGTERM.
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from pricefeed.config import AppSettings
from pricefeed.feeds.catalog import DEMO_PRICE_FEEDS
from pricefeed.feeds.client import FeedClient
from pricefeed.hermes.hermes_client import HermesClient
from pricefeed.logging import get_logger, setup_logging
from pricefeed.models import ClientSnapshot


def build_components(settings: AppSettings) -> dict[str, Any]:
    """Create the Hermes client and the feed client for the demo feeds.

    Does NOT open connections or start polling; that happens in the
    lifespan (dashboard mode) or run_headless().
    """
    price_service = HermesClient(settings.hermes)
    feed_client = FeedClient(DEMO_PRICE_FEEDS, price_service, settings.feeds)
    return {
        "price_service": price_service,
        "feed_client": feed_client,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start polling on startup; stop the client and close HTTP on shutdown."""
    from pricefeed.dashboard.broadcaster import make_broadcast_listener

    logger = get_logger("pricefeed.main")
    components = app.state.components
    price_service: HermesClient = components["price_service"]
    feed_client: FeedClient = components["feed_client"]

    app.state.feed_client = feed_client
    unsubscribe = feed_client.subscribe(make_broadcast_listener(app))

    await price_service.connect()
    await feed_client.start()
    logger.info("lifespan_started", base_url=price_service.base_url)

    yield

    unsubscribe()
    await feed_client.stop()
    await price_service.close()
    logger.info("price_feed_dashboard_stopped")


def _log_snapshot(client: FeedClient):
    """Listener for headless mode: one log line per feed per update."""
    logger = get_logger("pricefeed.main")

    def log_snapshot(snapshot: ClientSnapshot) -> None:
        if snapshot.error is not None:
            logger.warning(
                "price_update_failed",
                kind=snapshot.error.kind.value,
                error=snapshot.error.message,
                retry_count=snapshot.retry_count,
            )
            return
        for feed_id, reading in snapshot.readings.items():
            validation = client.validate(feed_id)
            logger.info(
                "price_update",
                symbol=reading.symbol,
                price=str(reading.price),
                confidence=str(reading.confidence),
                age_seconds=round(reading.age_seconds, 1),
                valid=validation.is_valid if validation else None,
                errors=validation.errors if validation else [],
                warnings=validation.warnings if validation else [],
            )

    return log_snapshot


async def run_headless(components: dict[str, Any]) -> None:
    """Run the feed client without a web server until a stop signal arrives."""
    logger = get_logger("pricefeed.main")
    price_service: HermesClient = components["price_service"]
    feed_client: FeedClient = components["feed_client"]

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    feed_client.subscribe(_log_snapshot(feed_client))
    try:
        await price_service.connect()
        await feed_client.start()
        if not feed_client.settings.enable_real_time_updates:
            await feed_client.refresh()
        await stop_event.wait()
        logger.info("graceful_shutdown_signal")
    finally:
        await feed_client.stop()
        await price_service.close()
        logger.info("price_feed_client_stopped")


async def run() -> None:
    """Run the price feed service, with or without the dashboard."""
    settings = AppSettings()
    setup_logging(settings.log_level)
    logger = get_logger("pricefeed.main")

    components = build_components(settings)

    if settings.dashboard.enabled:
        from pricefeed.dashboard.app import create_dashboard_app

        app = create_dashboard_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_with_dashboard",
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            base_url=settings.hermes.base_url,
        )

        config = uvicorn.Config(
            app,
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        logger.info("starting_without_dashboard", base_url=settings.hermes.base_url)
        await run_headless(components)


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
