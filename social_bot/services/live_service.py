from typing import Set

from fastapi import WebSocket

from social_bot.logging_config import get_logger
from social_bot.schemas.message import LiveMessage

logger = get_logger("live_service")

NEW_MESSAGE_EVENT = "new_message"


class LiveBroadcaster:
    """
    Push new message records to every connected dashboard socket.

    No backlog is kept: a viewer connecting later reads history over HTTP.
    """

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.add(websocket)
        logger.info(f"Viewer connected, total={len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket) -> None:
        self.active_connections.discard(websocket)
        logger.info(f"Viewer disconnected, total={len(self.active_connections)}")

    async def broadcast(self, message: LiveMessage) -> int:
        """Send one `new_message` frame per viewer; returns how many got it."""
        frame = {"event": NEW_MESSAGE_EVENT, "data": message.model_dump()}
        delivered = 0
        stale = []
        for websocket in list(self.active_connections):
            try:
                await websocket.send_json(frame)
                delivered += 1
            except Exception as exc:
                logger.info(f"Dropping viewer after failed send: {exc}")
                stale.append(websocket)
        for websocket in stale:
            self.disconnect(websocket)
        return delivered


broadcaster = LiveBroadcaster()


def get_broadcaster() -> LiveBroadcaster:
    return broadcaster
