import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse

from . import __version__
from .config import get_settings
from .db import close_mongo_connection, connect_to_mongo, get_db, is_connected
from .matching.exceptions import InvalidQueryStateError, InvalidRangeError
from .redis_bus import stop as redis_bus_stop
from .repositories.exceptions import StorageUnavailableError
from .routers import auth, matches, users

LOGGER = logging.getLogger("uvicorn.error")

app = FastAPI(title="LoveConnect API", version=__version__, default_response_class=ORJSONResponse)
settings = get_settings()

_allow_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
LOGGER.info("[CORS] allow_origins=%s", _allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allow_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    allow_credentials=True,
)
app.add_middleware(GZipMiddleware, minimum_size=512)


@app.middleware("http")
async def log_slow_requests(request: Request, call_next):
    t0 = time.time()
    response = await call_next(request)
    dt = (time.time() - t0) * 1000
    if dt >= get_settings().slow_request_ms:
        LOGGER.warning(
            "[perf] slow request %s %s %dms status=%s",
            request.method,
            request.url.path,
            int(dt),
            response.status_code,
        )
    return response


def _error(status_code: int, error: str, detail: str) -> ORJSONResponse:
    return ORJSONResponse(status_code=status_code, content={"error": error, "detail": detail})


@app.exception_handler(InvalidQueryStateError)
async def invalid_query_state_handler(_request: Request, exc: InvalidQueryStateError):
    return _error(409, "invalid_query_state", str(exc))


@app.exception_handler(InvalidRangeError)
async def invalid_range_handler(_request: Request, exc: InvalidRangeError):
    return _error(422, "invalid_range", str(exc))


@app.exception_handler(StorageUnavailableError)
async def storage_unavailable_handler(_request: Request, exc: StorageUnavailableError):
    return _error(503, "storage_unavailable", str(exc))


@app.on_event("startup")
async def startup():
    if get_settings().user_store_backend == "memory":
        LOGGER.info("User store backend: in-memory")
        return
    await connect_to_mongo()


@app.on_event("shutdown")
async def shutdown():
    await close_mongo_connection()
    await redis_bus_stop()


app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(matches.router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "LoveConnect API", "version": __version__, "status": "active"}


@app.get("/health")
async def health():
    current = get_settings()
    if current.user_store_backend == "memory":
        return {"status": "healthy", "database": "memory"}
    if not is_connected():
        return ORJSONResponse(status_code=500, content={"status": "unhealthy", "database": "disconnected"})
    try:
        await get_db().command("ping")
    except Exception as exc:
        LOGGER.error("Health check ping failed: %s", exc)
        return ORJSONResponse(
            status_code=500,
            content={"status": "unhealthy", "database": "disconnected", "error": str(exc)},
        )
    return {"status": "healthy", "database": "connected", "db": current.mongo_db}
