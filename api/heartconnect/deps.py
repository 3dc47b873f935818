from fastapi import Request

from .repo import SqlStorage
from .services.realtime import RealtimeHub
from .storage import Storage

_storage = SqlStorage()


def get_storage() -> Storage:
    return _storage


def get_hub(request: Request) -> RealtimeHub:
    return request.app.state.realtime
