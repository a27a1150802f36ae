import logging
import secrets

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .routes import router
from ..core.config import get_settings
from ..core.errors import ScanError

logger = logging.getLogger(__name__)

SESSION_COOKIE = "mr_session"
SESSION_MAX_AGE_S = 60 * 60 * 24 * 180


def _session_secret() -> str:
    secret = get_settings().app_session_secret
    if not secret:
        logger.warning("APP_SESSION_SECRET is not set; sessions will not survive a restart")
        secret = secrets.token_urlsafe(32)
    return secret


app = FastAPI(title="DineFinder API", version="0.1.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=_session_secret(),
    session_cookie=SESSION_COOKIE,
    max_age=SESSION_MAX_AGE_S,
    same_site="lax",
)
app.include_router(router, prefix="/api")


@app.exception_handler(ScanError)
async def scan_error_handler(request: Request, exc: ScanError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(Exception)
async def unknown_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content=ScanError("unknown", str(exc) or "Unknown error occurred").to_payload(),
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
