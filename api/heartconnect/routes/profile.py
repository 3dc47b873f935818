from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import get_current_user_id
from ..deps import get_storage
from ..errors import NotFound
from ..http_helpers import camelize
from ..schemas import ProfileInput, ProfileUpdate
from ..storage import Storage

router = APIRouter()


@router.get("/api/profiles/me")
def get_my_profile(
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any] | None:
    return camelize(storage.get_profile(user_id))


@router.post("/api/profiles")
def create_profile(
    payload: ProfileInput,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    profile = storage.create_profile(user_id, payload.model_dump())
    return camelize(profile)


@router.patch("/api/profiles/me")
def update_my_profile(
    payload: ProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    if storage.get_profile(user_id) is None:
        raise NotFound("Profile not found")
    profile = storage.update_profile(user_id, payload.model_dump(exclude_unset=True))
    return camelize(profile)


@router.get("/api/profiles/{user_id}")
def get_profile(
    user_id: str,
    _: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    profile = storage.get_profile(user_id)
    if not profile:
        raise NotFound("Profile not found")
    return camelize(profile)
