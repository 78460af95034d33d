import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.metrics import UPLOAD_COUNTER
from app.api.v1.router import api_router
from app.core.config import Settings, get_settings
from app.core.errors import UploadError
from app.core.logging import configure_logging
from app.integrations.storage.base import StorageBackend
from app.integrations.storage.factory import get_storage_backend
from app.models.upload import UploadResult
from app.schemas.upload import UploadResponse
from app.services.upload_service import UploadService

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)
    settings.check_required()
    storage = app.state.storage or get_storage_backend(settings)
    app.state.upload_service = UploadService(
        storage,
        settings.upload_policy(),
        write_timeout=settings.storage_write_timeout_seconds,
    )
    logger.info(
        "startup",
        env=settings.app_env,
        storage=storage.name,
        bucket=storage.bucket,
        folder=settings.upload_folder,
        max_file_size=settings.storage_max_file_size,
    )
    yield
    logger.info("shutdown")


def create_app(settings: Settings | None = None, storage: StorageBackend | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
    app.state.settings = settings
    app.state.storage = storage
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_log_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request",
            method=request.method,
            status=response.status_code,
        )
        return response

    @app.exception_handler(UploadError)
    async def upload_error_handler(_: Request, exc: UploadError):
        UPLOAD_COUNTER.labels(outcome=str(exc.code)).inc()
        logger.warning("upload_rejected", code=str(exc.code), status=exc.status_code, message=exc.message)
        result = UploadResult.failed(str(exc.code), exc.message)
        body = UploadResponse.from_result(result, backend_code=getattr(exc, "backend_code", None))
        return JSONResponse(status_code=exc.status_code, content=body.to_json())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_: Request, exc: StarletteHTTPException):
        # Starlette's router raises a bare "Not Found" for unknown routes.
        message = "Endpoint not found" if exc.detail == "Not Found" else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_: Request, exc: Exception):
        logger.exception("unhandled_exception", error=str(exc))
        return JSONResponse(status_code=500, content={"success": False, "message": "Something went wrong!"})

    app.include_router(api_router, prefix=settings.api_prefix)
    return app
