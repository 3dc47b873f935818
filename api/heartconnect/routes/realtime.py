import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

from ..auth.deps import resolve_socket_user
from ..deps import get_storage
from ..services.realtime import RealtimeHub
from ..storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter()

WS_UNAUTHENTICATED = 4401


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, storage: Storage = Depends(get_storage)) -> None:
    """Chat fan-out channel. Clients send ``{"type": "subscribe", "matchId": ...}``."""
    user = await run_in_threadpool(resolve_socket_user, websocket, storage)
    if user is None:
        await websocket.close(code=WS_UNAUTHENTICATED)
        return

    hub: RealtimeHub = websocket.app.state.realtime
    user_id = str(user["id"])
    await websocket.accept()
    logger.info(f"[realtime] connected user_id={user_id}")
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))
            raw = frame.get("text")
            if raw is None:
                logger.warning(f"[realtime] dropping binary frame from user_id={user_id}")
                continue
            try:
                await hub.handle_message(websocket, user_id, raw, storage)
            except Exception:
                logger.exception(f"[realtime] failed to handle frame from user_id={user_id}")
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(websocket)
        logger.info(f"[realtime] disconnected user_id={user_id}")
