"""
FastAPI application factory.

create_app() builds every component from one AppConfig, wires the JSON API,
the static content mounts and the single-page frontend fallback.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import AppConfig
from ..errors import NotFoundError, PhotoJournalError
from ..logging_config import get_logger, log_error
from ..services.image_processor import ImageProcessor
from ..services.storage import AboutRepository, JournalRepository, MomentsRepository
from ..services.thumbnails import ThumbnailQueue
from ..services.uploads import UploadService
from .auth import admin_guard
from .dependencies import Services
from .rate_limit import FixedWindowRateLimiter
from .routes import router
from .static import CachedStaticFiles, cache_control

logger = get_logger(__name__)


def build_services(config: AppConfig) -> Services:
    """Construct repositories, the thumbnail worker and the upload pipeline."""
    processor = ImageProcessor(config.thumbnail_size, config.thumbnail_quality)
    moments = MomentsRepository(config, processor)
    journals = JournalRepository(config, processor)
    thumbnails = ThumbnailQueue(processor, max_workers=config.thumbnail_workers)
    return Services(
        config=config,
        moments=moments,
        journals=journals,
        about=AboutRepository(config),
        thumbnails=thumbnails,
        uploads=UploadService(config, moments, journals, thumbnails),
    )


def build_rate_limiters(config: AppConfig) -> dict[str, FixedWindowRateLimiter]:
    api_limit, api_window = config.api_rate_limit
    upload_limit, upload_window = config.upload_rate_limit
    return {
        "api": FixedWindowRateLimiter(
            "api",
            api_limit,
            api_window,
            "Too many requests, please try again later.",
            enabled=config.rate_limit_enabled,
        ),
        "upload": FixedWindowRateLimiter(
            "upload",
            upload_limit,
            upload_window,
            "Upload limit reached, please try again later.",
            enabled=config.rate_limit_enabled,
        ),
    }


def register_error_handlers(app: FastAPI) -> None:
    """Every error leaves the server as JSON {"error": message}."""

    @app.exception_handler(PhotoJournalError)
    async def handle_app_error(request: Request, exc: PhotoJournalError) -> JSONResponse:
        return JSONResponse(exc.to_response(), status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            location = ".".join(str(part) for part in errors[0].get("loc", ()))
            message = f"Invalid request: {location} {errors[0].get('msg', '')}".strip()
        logger.info("request_validation_failed", path=request.url.path, errors=len(errors))
        return JSONResponse({"error": message}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        log_error(exc, {"path": request.url.path, "method": request.method})
        return JSONResponse({"error": "Internal server error"}, status_code=500)


def mount_content(app: FastAPI, config: AppConfig) -> None:
    """Serve content directories under the URL layout the frontend expects."""
    max_age = config.static_max_age
    app.mount("/images", CachedStaticFiles(directory=config.moments_images_dir, max_age=max_age), name="images")
    app.mount(
        "/thumbnails",
        CachedStaticFiles(directory=config.moments_thumbnails_dir, max_age=max_age),
        name="thumbnails",
    )
    app.mount(
        "/content/journals",
        CachedStaticFiles(directory=config.journals_dir, max_age=max_age),
        name="journals",
    )
    app.mount("/assets", CachedStaticFiles(directory=config.assets_dir, max_age=max_age), name="assets")


def register_frontend(app: FastAPI, config: AppConfig) -> None:
    """Serve files from public/, falling back to the single-page entry document."""
    public_root = config.public_dir.resolve()

    @app.get("/{full_path:path}", include_in_schema=False)
    def frontend(full_path: str) -> FileResponse:
        if full_path == "api" or full_path.startswith("api/"):
            raise NotFoundError(f"No API route for /{full_path}", user_message="Not found")

        if full_path:
            candidate = (public_root / full_path).resolve()
            if candidate.is_relative_to(public_root) and candidate.is_file():
                return FileResponse(candidate, headers={"Cache-Control": cache_control(config.static_max_age)})

        index = public_root / "index.html"
        if not index.is_file():
            raise NotFoundError("Frontend entry document is missing", user_message="Not found")
        return FileResponse(index, headers={"Cache-Control": "no-cache"})


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    Build the photojournal application.

    Args:
        config: Settings; read from the environment when omitted

    Returns:
        FastAPI: Configured application
    """
    config = config or AppConfig.from_env()
    config.ensure_layout()
    services = build_services(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("application_started", content_root=str(config.content_root), production=config.production)
        yield
        services.thumbnails.shutdown()

    app = FastAPI(title="photojournal", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.services = services
    app.state.rate_limiters = build_rate_limiters(config)

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.middleware("http")(admin_guard)
    register_error_handlers(app)

    app.include_router(router)
    mount_content(app, config)
    register_frontend(app, config)

    return app
