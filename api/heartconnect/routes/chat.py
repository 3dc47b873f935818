from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import get_current_user_id
from ..config import RL_MESSAGES_LIMIT, RL_WINDOW_SECONDS
from ..deps import get_hub, get_storage
from ..http_helpers import camelize
from ..schemas import MessageInput
from ..services import chat
from ..services.rate_limit import user_rate_limit
from ..services.realtime import RealtimeHub
from ..storage import Storage

router = APIRouter()

RL_MESSAGES = user_rate_limit("messages", RL_MESSAGES_LIMIT, RL_WINDOW_SECONDS)


@router.get("/api/messages/{match_id}")
def get_messages(
    match_id: str,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> list[dict[str, Any]]:
    return camelize(chat.get_messages(storage, match_id, user_id))


@router.post("/api/matches/{match_id}/messages", dependencies=[RL_MESSAGES])
async def send_message(
    match_id: str,
    payload: MessageInput,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
    hub: RealtimeHub = Depends(get_hub),
) -> dict[str, Any]:
    message = await chat.send_message(storage, hub.publish, match_id, user_id, payload.content)
    return camelize(message)
