from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from deployhooks.config import settings
from deployhooks.database import Base, SessionLocal, engine
from deployhooks.logging_config import configure_logging, get_logger
from deployhooks.models import CacheEntry, Option, Session, User  # noqa: F401
from deployhooks.routers.auth.nonces import router as nonces_router
from deployhooks.routers.deployments.status import router as status_router
from deployhooks.routers.deployments.trigger import router as trigger_router
from deployhooks.routers.settings import router as settings_router
from deployhooks.routers.webhooks.content import router as content_webhook_router
from deployhooks.services.exceptions import ApiErrorKind, ErrorKind, TrackerError, VercelApiError
from deployhooks.services.scheduler import shutdown_scheduler, start_scheduler, sync_build_schedule

configure_logging(settings)
logger = get_logger(__name__)

TRACKER_ERROR_STATUS = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.BUILD_IN_PROGRESS: 409,
    ErrorKind.NOT_CONFIGURED: 500,
    ErrorKind.MALFORMED_UPSTREAM: 500,
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    if not settings.session_secret:
        logger.warning("SESSION_SECRET is not set, action nonces are not secret")

    start_scheduler()
    db = SessionLocal()
    try:
        sync_build_schedule(db)
    finally:
        db.close()

    yield

    shutdown_scheduler()


app = FastAPI(title="Deploy Hooks API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    status_code = TRACKER_ERROR_STATUS.get(exc.kind, 500)
    if status_code >= 500:
        logger.error("[Tracker] Request failed", path=request.url.path, kind=exc.kind.value, message=exc.message)
    else:
        logger.warning("[Tracker] Request refused", path=request.url.path, kind=exc.kind.value, message=exc.message)
    return _error(status_code, exc.message)


@app.exception_handler(VercelApiError)
async def vercel_error_handler(request: Request, exc: VercelApiError):
    if exc.kind == ApiErrorKind.NOT_FOUND:
        status_code = 404
    elif exc.timeout:
        status_code = 504
    else:
        status_code = 500
    logger.error("[Vercel] Upstream failure", path=request.url.path, kind=exc.kind.value, detail=exc.detail)
    return _error(status_code, exc.detail)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


app.include_router(nonces_router, prefix="/api")
app.include_router(status_router, prefix="/api")
app.include_router(trigger_router, prefix="/api")
app.include_router(settings_router, prefix="/api")
app.include_router(content_webhook_router, prefix="/api")


@app.get("/api/healthcheck")
async def healthcheck():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("deployhooks.main:app", host="127.0.0.1", port=8000, reload=True)
