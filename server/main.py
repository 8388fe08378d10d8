"""
FastAPI backend delivering server-defined UI screens to client apps.

Serves versioned screen schemas through a process-local cache and lets
admins manage categories, brands and their images.
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, ORJSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.container import container
from core.exceptions import AppError
from core.health import get_health_status, set_startup_time
from core.logging import configure_logging, get_logger
from middleware.request_logging import CatchAllExceptionsMiddleware, RequestLoggingMiddleware
from routers import auth, content, ui, upload

APP_VERSION = "1.0.0"

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    settings = container.settings()
    logger.info("Starting Dynamic UI Services")
    set_startup_time()

    # Storage must be reachable; failures here are fatal
    await container.database().startup()
    container.upload_service().ensure_directories()

    seeded = await container.user_auth_service().ensure_admin(
        settings.admin_username, settings.admin_password
    )
    if seeded:
        logger.info("Seeded admin account", username=seeded.username)

    cleanup = container.cleanup_service()
    await cleanup.start()

    logger.info("Services started successfully",
                schema_base_path=settings.schema_base_path,
                cache_ttl=settings.schema_cache_ttl)
    yield

    await cleanup.stop()
    container.schema_cache().invalidate()
    await container.database().shutdown()
    logger.info("Services shutdown complete")


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error with the ``{"success": false, ...}`` envelope."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log("Request failed", path=request.url.path, code=exc.code,
            status_code=exc.status_code, error=str(exc))
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.public_message, "code": exc.code}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("Request validation failed", path=request.url.path, errors=exc.errors())
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid request", "code": "INVALID_INPUT"}
        )


def create_app() -> FastAPI:
    settings = container.settings()
    configure_logging(settings)

    app = FastAPI(
        title="Dynamic UI Services",
        version=APP_VERSION,
        description="Server-driven UI schema delivery and content administration",
        lifespan=lifespan,
        default_response_class=ORJSONResponse
    )

    register_exception_handlers(app)

    app.add_middleware(CatchAllExceptionsMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ui and upload own fixed /admin/... paths; they must precede the
    # content router's /admin/{kind} routes
    app.include_router(auth.router, prefix=settings.api_prefix)
    app.include_router(ui.router, prefix=settings.api_prefix)
    app.include_router(upload.router, prefix=settings.api_prefix)
    app.include_router(content.router, prefix=settings.api_prefix)

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")

    @app.get("/health")
    async def health_check():
        """Detailed health check."""
        return await get_health_status(
            database=container.database(),
            cache=container.cache(),
            schema_store=container.schema_store(),
            version=APP_VERSION
        )

    logger.info("Application configured", api_prefix=settings.api_prefix)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = container.settings()
    logger.info("Starting Dynamic UI Services",
               host=settings.host, port=settings.port, debug=settings.debug)
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.workers
    )
