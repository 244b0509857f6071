"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from admin_panel.config import settings
from admin_panel.dependencies import Services, get_services
from admin_panel.errors import AdminPanelError, safe_error_message
from admin_panel.schemas.common import ErrorResponse

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create storage on startup and deal with a lock left by a crashed process."""
    services = get_services()
    await services.pipeline.setup()

    if services.upload_lock.is_locked():
        if settings.CLEAR_STALE_LOCK_ON_STARTUP:
            await services.upload_lock.clear_stale()
        else:
            logger.warning(
                f"Upload lock {services.upload_lock.lock_path} exists at startup; "
                "uploads will fail until it is removed"
            )

    logger.info("Upload admin panel started")
    yield


app = FastAPI(
    title="Upload Admin Panel API",
    version="1.0.0",
    description="Backend API for the admin panel file uploads and image scroll.",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(AdminPanelError)
async def admin_panel_error_handler(request: Request, exc: AdminPanelError):
    """Every error response is `{success: false, error, detail?}`."""
    body = ErrorResponse(error=exc.message, detail=exc.detail or None)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Anything unexpected still answers with the JSON error shape."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    body = ErrorResponse(error="Internal error", detail=safe_error_message(exc))
    return JSONResponse(status_code=500, content=body.model_dump())


@app.get("/api/health")
async def health_check(services: Services = Depends(get_services)):
    """Report whether the upload log is readable and the upload lock is free."""
    try:
        records = await services.upload_log.load()
        return {
            "status": "ok",
            "files": len(records),
            "uploadLocked": services.upload_lock.is_locked(),
        }
    except Exception as e:
        return {"status": "error", "uploadLog": str(e)}


# Register routers
from admin_panel.routes.files import router as files_router
from admin_panel.routes.img_scroll import router as img_scroll_router
app.include_router(files_router)
app.include_router(img_scroll_router)

# Stored payloads are also served directly
app.mount(
    "/api/uploads",
    StaticFiles(directory=settings.STORAGE_DIR, check_dir=False),
    name="uploads",
)


def run():
    """Console entry point: serve the app with uvicorn on API_PORT."""
    import uvicorn
    uvicorn.run("admin_panel.main:app", host="0.0.0.0", port=settings.API_PORT)
