from typing import Any

from fastapi import APIRouter, Depends, Query

from ..auth.deps import get_current_user_id
from ..config import DISCOVER_DEFAULT_LIMIT
from ..deps import get_storage
from ..http_helpers import camelize
from ..services.discovery import get_candidates
from ..storage import Storage

router = APIRouter()


@router.get("/api/discover")
def discover(
    limit: int = Query(default=DISCOVER_DEFAULT_LIMIT, ge=1),
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> list[dict[str, Any]]:
    return camelize(get_candidates(storage, user_id, limit=limit))
