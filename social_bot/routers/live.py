from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from social_bot.services.live_service import get_broadcaster

router = APIRouter()


@router.websocket("/ws")
async def live_messages(websocket: WebSocket):
    """Dashboard live feed. Incoming frames are ignored; the socket only receives."""
    broadcaster = get_broadcaster()
    await broadcaster.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        broadcaster.disconnect(websocket)
