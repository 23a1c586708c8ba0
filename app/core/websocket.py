import logging
from typing import Any, Dict, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from app.core.logger import log_game_event

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Registry of open sockets. Every message goes to every client as {event, data}."""

    def __init__(self):
        self.active: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active.add(websocket)
        logger.info("WebSocket connected (%d open)", len(self.active))

    def disconnect(self, websocket: WebSocket) -> None:
        self.active.discard(websocket)
        logger.info("WebSocket disconnected (%d open)", len(self.active))

    async def broadcast(self, event: str, data: Dict[str, Any]) -> None:
        message = {"event": event, "data": jsonable_encoder(data)}
        log_game_event(event, quiz_id=data.get("quizId"), data=message["data"])

        dead_connections = []
        for ws in list(self.active):
            try:
                await ws.send_json(message)
            except Exception:
                dead_connections.append(ws)

        for ws in dead_connections:
            self.active.discard(ws)
        if dead_connections:
            logger.debug("Cleaned %d dead connection(s)", len(dead_connections))


manager = ConnectionManager()
