"""
Main FastAPI application for the Art Gallery backend
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings, settings as default_settings
from ..exceptions import AuthError, GalleryError
from ..logging import configure_logging, get_logger
from ..middleware import LoggingContextMiddleware
from .dependencies import GalleryServices, build_services

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    services: GalleryServices = app.state.services
    logger.info("Starting Art Gallery API...", storage_backend=services.blob_store.name)

    database = services.database
    if database is not None:
        if services.settings.database_auto_create:
            await database.create_schema()
        ok, error = await database.check_connection()
        if ok:
            logger.info("Database connection validated")
        else:
            logger.error("Database connection validation failed", error=error)

    yield

    logger.info("Shutting down Art Gallery API...")
    if database is not None:
        await database.dispose()


async def gallery_error_handler(request: Request, exc: GalleryError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=exc.message,
            cause=str(exc.__cause__) if exc.__cause__ else None,
        )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=exc.status_code, content={"detail": exc.message}, headers=headers
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()))
        message = f"{location}: {errors[0].get('msg')}"
    return JSONResponse(status_code=400, content={"detail": message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(
    settings: Settings | None = None, services: GalleryServices | None = None
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or (services.settings if services else default_settings)
    services = services or build_services(settings)

    app = FastAPI(
        title="Art Gallery API",
        description="Public gallery and admin artwork management",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.services = services

    app.add_middleware(LoggingContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(GalleryError, gallery_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/")
    async def root():  # pyright: ignore [reportUnusedFunction]
        return {"message": "Art Gallery API running"}

    @app.get("/health")
    async def health_check():  # pyright: ignore [reportUnusedFunction]
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    from .endpoints import artworks, auth, gallery, images

    app.include_router(auth.router, prefix="/admin", tags=["Auth"])
    app.include_router(artworks.router, prefix="/admin", tags=["Admin"])
    app.include_router(gallery.router, tags=["Gallery"])
    app.include_router(images.router, prefix="/images", tags=["Images"])

    return app


configure_logging(debug=default_settings.debug, level=default_settings.log_level)

# Create the main application instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "artgallery.api.app:app",
        host=default_settings.api_host,
        port=default_settings.api_port,
        log_level=default_settings.log_level.lower(),
    )
