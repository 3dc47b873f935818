from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import get_current_user_id
from ..config import RL_SWIPES_LIMIT, RL_WINDOW_SECONDS
from ..deps import get_storage
from ..http_helpers import camelize
from ..schemas import SwipeInput
from ..services.rate_limit import user_rate_limit
from ..services.swipes import get_daily_status, record_swipe
from ..storage import Storage

router = APIRouter()

RL_SWIPES = user_rate_limit("swipes", RL_SWIPES_LIMIT, RL_WINDOW_SECONDS)


@router.get("/api/swipes/daily")
def daily_swipes(
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    return get_daily_status(storage, user_id)


@router.post("/api/swipes", dependencies=[RL_SWIPES])
def create_swipe(
    payload: SwipeInput,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    result = record_swipe(storage, user_id, payload.swiped_id, payload.direction)
    body: dict[str, Any] = {"swipe": camelize(result.swipe), "isMatch": result.is_match}
    if result.match:
        body["matchId"] = result.match["id"]
    return body
