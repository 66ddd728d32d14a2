import logging
import traceback
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from markdowntailor.core.config import settings
from markdowntailor.core.errors import StorageUnavailable, ValidationError
from markdowntailor.core.redis_client import close_redis, redis_is_healthy
from markdowntailor.core.store import RedisStore, create_store
from markdowntailor.web.routers.catalog import router as catalog_router
from markdowntailor.web.routers.resume import router as resume_router
from markdowntailor.web.routers.sessions import router as sessions_router
from markdowntailor.web.routers.ws import router as ws_router

BASE_DIR = Path(__file__).resolve().parent

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("markdowntailor")

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)

# Error templates
templates = Jinja2Templates(directory=str(BASE_DIR / "web" / "templates"))

DEFAULT_MESSAGES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Page not found",
    405: "Method Not Allowed",
    409: "Conflict",
    413: "Payload Too Large",
    422: "Validation Error",
    503: "Service Unavailable",
}


@app.on_event("startup")
async def on_startup():
    # Tests may install their own store before startup
    if getattr(app.state, "store", None) is None:
        app.state.store = await create_store(settings)
    logger.info("Resume store ready (%s)", type(app.state.store).__name__)


@app.on_event("shutdown")
async def on_shutdown():
    store = getattr(app.state, "store", None)
    if store is not None:
        await store.close()
        app.state.store = None
    await close_redis()


# Routers
app.include_router(catalog_router)
app.include_router(resume_router)
app.include_router(sessions_router)
app.include_router(ws_router)


@app.get("/healthz")
async def healthz():
    if isinstance(getattr(app.state, "store", None), RedisStore) and not await redis_is_healthy():
        return JSONResponse({"status": "degraded", "store": "unavailable"}, status_code=503)
    return {"status": "ok"}


# -------------------
# Exception Handlers
# -------------------

def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api/") or "application/json" in request.headers.get("accept", "")


def _error_response(request: Request, code: int, message: str, tb=None):
    if _wants_json(request):
        return JSONResponse({"detail": message}, status_code=code)
    ctx = {
        "request": request,
        "title": f"{code} Error",
        "code": code,
        "message": message,
        "debug": settings.DEBUG,
        "traceback": tb,
    }
    return templates.TemplateResponse(request, "error.html", ctx, status_code=code)


@app.exception_handler(ValidationError)
async def resume_validation_handler(request: Request, exc: ValidationError):
    return _error_response(request, 422, str(exc))


@app.exception_handler(StorageUnavailable)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
    logger.error("Storage unavailable while serving %s: %s", request.url.path, exc)
    return _error_response(request, 503, "Resume storage is unavailable. Please try again later.")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    if _wants_json(request):
        return JSONResponse({"detail": jsonable_encoder(exc.errors())}, status_code=422)
    return _error_response(request, 422, "Validation Error")


@app.exception_handler(HTTPException)
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = exc.status_code
    message = getattr(exc, "detail", None) or DEFAULT_MESSAGES.get(code) or "Unexpected error"
    return _error_response(request, code, message)


# Only install a global 500 handler when NOT in debug mode.
if not settings.DEBUG:
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        tb = "".join(traceback.format_exception(None, exc, exc.__traceback__))
        return _error_response(request, 500, "An internal server error occurred.", tb if settings.DEBUG else None)
