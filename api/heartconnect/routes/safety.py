import logging
from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import get_current_user_id
from ..deps import get_storage
from ..errors import NotFound, ValidationError
from ..http_helpers import camelize
from ..schemas import BlockInput, ReportInput
from ..storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_other_user(storage: Storage, user_id: str, target_id: str, action: str) -> str:
    target_id = target_id.strip()
    if target_id == user_id:
        raise ValidationError(f"Cannot {action} yourself")
    if storage.get_user(target_id) is None:
        raise NotFound("User not found")
    return target_id


@router.post("/api/reports")
def create_report(
    payload: ReportInput,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    reported_id = _require_other_user(storage, user_id, payload.reported_id, "report")
    details = (payload.details or "").strip() or None
    report = storage.create_report(user_id, reported_id, payload.reason, details)
    return camelize(report)


@router.post("/api/blocks")
def create_block(
    payload: BlockInput,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    blocked_id = _require_other_user(storage, user_id, payload.blocked_id, "block")
    block = storage.create_block(user_id, blocked_id)
    logger.info(f"[safety] block blocker_id={user_id} blocked_id={blocked_id}")
    return camelize(block)


@router.get("/api/blocks")
def list_blocks(
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> list[dict[str, Any]]:
    return camelize(storage.list_blocks(user_id))


@router.delete("/api/blocks/{blocked_id}")
def remove_block(
    blocked_id: str,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    removed = storage.remove_block(user_id, blocked_id)
    return {"status": "unblocked", "blockedId": blocked_id, "removed": removed}
