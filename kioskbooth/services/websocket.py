import asyncio
import json
import logging
from typing import List, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WebSocketManager:
    def __init__(self):
        self.active_connections: List[WebSocket] = []
        self._pending: Set[asyncio.Task] = set()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, message: dict):
        for connection in list(self.active_connections):
            try:
                await connection.send_text(json.dumps(message))
            except Exception as e:
                logger.warning("Dropping websocket after failed send: %s", e)
                self.disconnect(connection)

    def publish(self, message: dict) -> None:
        """Broadcast from synchronous code running inside the event loop."""
        if not self.active_connections:
            return
        task = asyncio.get_running_loop().create_task(self.broadcast(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)


websocket_manager = WebSocketManager()
