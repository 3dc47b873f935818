from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import get_current_user_id
from ..deps import get_storage
from ..http_helpers import camelize
from ..services.chat import require_participant
from ..storage import Storage

router = APIRouter()


@router.get("/api/matches")
def list_matches(
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> list[dict[str, Any]]:
    return camelize(storage.list_matches_for_user(user_id))


@router.get("/api/matches/{match_id}")
def get_match(
    match_id: str,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    return camelize(require_participant(storage, match_id, user_id))
