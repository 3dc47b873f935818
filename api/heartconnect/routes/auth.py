from typing import Any

from fastapi import APIRouter, Depends

from ..auth.deps import get_current_user
from ..http_helpers import camelize

router = APIRouter()


@router.get("/api/auth/user")
def get_auth_user(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return camelize(current_user)
