import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException

from .config import CORS_ORIGINS
from .database import Base, SessionLocal, engine
from .errors import ServiceError
from .http_helpers import validation_message
from .logging_config import setup_logging
from .routes import include_modular_routers
from .services.realtime import RealtimeHub
from . import models  # noqa: F401  registers tables on Base.metadata

logger = logging.getLogger(__name__)

app = FastAPI(title="HeartConnect API")
app.state.realtime = RealtimeHub()
include_modular_routers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,  # session cookie
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = validation_message(exc)
    logger.info(f"[validation] {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"[error] unhandled failure on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def run_migrations() -> None:
    Base.metadata.create_all(bind=engine)


def wait_for_db(max_attempts: int = 20, delay_seconds: float = 1.5) -> None:
    last_err: Exception | None = None
    for _ in range(max_attempts):
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
                db.commit()
            return
        except OperationalError as exc:
            last_err = exc
            time.sleep(delay_seconds)
    if last_err:
        raise last_err


@app.on_event("startup")
def on_startup() -> None:
    setup_logging()
    wait_for_db()
    run_migrations()
    logger.info("[startup] database ready")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
