import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from events.bus import NotificationBus
from events.schemas import Notification

logger = logging.getLogger(__name__)

router = APIRouter()

BACKLOG_SIZE = 100


class ConnectionManager:
    """Manages WebSocket connections for real-time updates."""

    def __init__(self) -> None:
        self.active_connections: set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        self.active_connections.discard(websocket)

    async def send_message(self, websocket: WebSocket, message: dict[str, Any]) -> None:
        if websocket.application_state == WebSocketState.CONNECTED:
            await websocket.send_json(message)

    async def broadcast(self, message: dict[str, Any]) -> None:
        for connection in list(self.active_connections):
            try:
                await self.send_message(connection, message)
            except (WebSocketDisconnect, RuntimeError):
                self.disconnect(connection)


class NotificationRelay:
    """Forwards bus notifications to WebSocket clients in emission order.

    Notifications are published from worker threads; the bus callback only
    hands them to the event loop, and a single task drains the queue so
    clients receive them in sequence order.
    """

    def __init__(self, notifications: NotificationBus, connection_manager: ConnectionManager):
        self._notifications = notifications
        self._connection_manager = connection_manager
        self._queue: asyncio.Queue[dict[str, Any]] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task[None] | None = None
        self._unsubscribe: Callable[[], None] | None = None

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._unsubscribe = self._notifications.subscribe(self._on_notification)
        self._task = asyncio.create_task(self._relay_loop())

    async def stop(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    def _on_notification(self, notification: Notification) -> None:
        if self._loop is None or self._queue is None:
            return
        message = {"type": "notification", "data": notification.model_dump(mode="json")}
        self._loop.call_soon_threadsafe(self._queue.put_nowait, message)

    async def _relay_loop(self) -> None:
        assert self._queue is not None
        while True:
            try:
                message = await self._queue.get()
                await self._connection_manager.broadcast(message)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in notification relay loop")


manager = ConnectionManager()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Stream notifications: a backlog snapshot on connect, then live events."""
    notifications: NotificationBus = websocket.app.state.engine.notifications
    await manager.connect(websocket)

    try:
        backlog = notifications.recent()[-BACKLOG_SIZE:]
        await manager.send_message(
            websocket,
            {
                "type": "snapshot",
                "data": [event.model_dump(mode="json") for event in backlog],
            },
        )

        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        manager.disconnect(websocket)
