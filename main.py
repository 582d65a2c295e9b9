"""
Main FastAPI application entry point.
"""

from fastapi import FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
import logging
from contextlib import asynccontextmanager

from app.core.config import settings
from app.core.database import SessionLocal, init_db
from app.core.exceptions import ImageUploadError, InvalidImageError, RecordNotFoundError, RemoteWriteError
from app.core.local_storage import LocalStorage
from app.core.realtime import ChangeFeed
from app.routers import api_router
from app.services.active_business import ActiveBusinessSelector
from app.services.auth_provider import AuthProvider
from app.services.entity_store import EntityStore
from app.services.image_storage import build_image_storage
from app.services.notifications import NotificationCenter
from app.services.remote_database import RemoteDatabase

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format=settings.log_format,
)
logger = logging.getLogger(__name__)

# Suppress uvicorn warnings for invalid HTTP requests
logging.getLogger("uvicorn.error").setLevel(logging.ERROR)


# Lifespan context manager for startup/shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: tables, default user, then the store with its collaborators
    init_db()

    auth_provider = AuthProvider(SessionLocal)
    await run_in_threadpool(
        auth_provider.ensure_default_user,
        settings.ADMIN_NAME,
        settings.ADMIN_EMAIL,
        settings.ADMIN_PASSWORD,
    )

    feed = ChangeFeed(enabled=settings.REALTIME_ENABLED)
    local_storage = LocalStorage(settings.LOCAL_STORAGE_PATH)
    image_storage = build_image_storage(settings)
    store = EntityStore(
        RemoteDatabase(SessionLocal, feed),
        feed,
        image_storage,
        ActiveBusinessSelector(local_storage),
        notification_limit=settings.NOTIFICATION_LIMIT,
        load_timeout=settings.STORE_LOAD_TIMEOUT,
    )
    await store.load()
    if store.start_sync():
        logger.info("🚀 Realtime sync started")

    app.state.auth_provider = auth_provider
    app.state.image_storage = image_storage
    app.state.store = store
    app.state.notification_center = NotificationCenter(store, local_storage)

    yield

    # Shutdown: leave the change streams
    store.stop_sync()
    logger.info("🛑 Realtime sync stopped")

# Create FastAPI app with lifespan
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Add middleware to handle invalid requests
@app.middleware("http")
async def block_invalid_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        # Log the full error for debugging
        logger.error(f"Request failed: {str(e)}", exc_info=True)

        # Return detailed error in development, generic in production
        if settings.debug:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={
                    "detail": str(e),
                    "error_type": type(e).__name__
                }
            )
        else:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"detail": "Invalid request"}
            )

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors with detailed messages"""
    errors = exc.errors()
    error_messages = []

    for error in errors:
        field = " -> ".join(str(x) for x in error["loc"])
        message = error["msg"]
        error_type = error["type"]
        error_messages.append(f"{field}: {message} (type: {error_type})")

    logger.error(f"Validation error: {error_messages}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Validation Error",
            "errors": error_messages,
            "raw_errors": errors if settings.debug else None
        }
    )


@app.exception_handler(RemoteWriteError)
async def remote_write_exception_handler(request: Request, exc: RemoteWriteError):
    """The database rejected a mutation; the cache was left unchanged"""
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": exc.message}
    )


@app.exception_handler(ImageUploadError)
async def image_upload_exception_handler(request: Request, exc: ImageUploadError):
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc)}
    )


@app.exception_handler(InvalidImageError)
async def invalid_image_exception_handler(request: Request, exc: InvalidImageError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)}
    )


@app.exception_handler(RecordNotFoundError)
async def not_found_exception_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)}
    )

# Include API router
app.include_router(api_router, prefix="/api")

# Locally stored images are served by the app itself
if settings.IMAGE_BACKEND == "local":
    app.mount("/media", StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False), name="media")

@app.get("/")
def read_root():
    """Root endpoint for health check."""
    return {
        "status": "ok",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.ENVIRONMENT
    }

@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level="error",  # Suppress invalid HTTP warnings
        access_log=False,   # Disable access logs to reduce noise
    )
