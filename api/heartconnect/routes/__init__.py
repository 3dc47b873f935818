from fastapi import FastAPI

from .auth import router as auth_router
from .chat import router as chat_router
from .discover import router as discover_router
from .match import router as match_router
from .profile import router as profile_router
from .realtime import router as realtime_router
from .safety import router as safety_router
from .swipes import router as swipes_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(auth_router, tags=["auth"])
    app.include_router(profile_router, tags=["profiles"])
    app.include_router(discover_router, tags=["discover"])
    app.include_router(swipes_router, tags=["swipes"])
    app.include_router(match_router, tags=["matches"])
    app.include_router(chat_router, tags=["chat"])
    app.include_router(safety_router, tags=["safety"])
    app.include_router(realtime_router, tags=["realtime"])


__all__ = ["include_modular_routers"]
