"""WebSocket channel that keeps open dashboards in sync with the feed client.

A socket receives the current status panel and price cards as soon as it
connects, then every fragment the broadcaster renders after a client update.
"""

from __future__ import annotations

import asyncio

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from pricefeed.dashboard.broadcaster import render_snapshot

log = structlog.get_logger(__name__)

router = APIRouter()


class DashboardHub:
    """Open dashboard sockets plus delivery counters for the status API.

    Fragments go to all sockets concurrently. A socket whose send fails is
    dropped.
    """

    def __init__(self) -> None:
        self.connections: set[WebSocket] = set()
        self.fragments_delivered = 0
        self.sockets_dropped = 0

    async def connect(self, ws: WebSocket, initial_html: str | None = None) -> None:
        """Accept a socket and push the current dashboard state to it."""
        await ws.accept()
        self.connections.add(ws)
        log.info("dashboard_ws_connected", total=len(self.connections))
        if initial_html is not None and not await self._send(ws, initial_html):
            self._drop([ws])

    def disconnect(self, ws: WebSocket) -> None:
        self.connections.discard(ws)
        log.info("dashboard_ws_disconnected", total=len(self.connections))

    async def broadcast(self, html: str) -> int:
        """Send one rendered snapshot to every socket.

        Returns:
            Number of sockets the fragment was delivered to.
        """
        sockets = list(self.connections)
        results = await asyncio.gather(*(self._send(ws, html) for ws in sockets))
        failed = [ws for ws, ok in zip(sockets, results) if not ok]
        if failed:
            self._drop(failed)
        return len(sockets) - len(failed)

    async def _send(self, ws: WebSocket, html: str) -> bool:
        try:
            await ws.send_text(html)
        except Exception:
            return False
        self.fragments_delivered += 1
        return True

    def _drop(self, sockets: list[WebSocket]) -> None:
        for ws in sockets:
            self.connections.discard(ws)
        self.sockets_dropped += len(sockets)
        log.warning(
            "dashboard_ws_dropped",
            dropped=len(sockets),
            remaining=len(self.connections),
        )


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Live update channel. Incoming messages are read and ignored."""
    hub: DashboardHub = websocket.app.state.hub
    await hub.connect(websocket, initial_html=render_snapshot(websocket.app))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        hub.disconnect(websocket)
