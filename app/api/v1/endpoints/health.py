from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from app.api.deps import get_app_settings, get_upload_service
from app.api.metrics import REQUEST_COUNTER
from app.core.config import Settings
from app.core.errors import UploadError
from app.schemas.upload import HealthResponse, StorageCheckResponse
from app.services.upload_service import UploadService
from app.utils.formatting import format_size, supported_format_labels

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings: Settings = Depends(get_app_settings)):
    REQUEST_COUNTER.labels(path="/health").inc()
    policy = settings.upload_policy()
    return HealthResponse(
        status="Server is running!",
        timestamp=datetime.now(UTC),
        supported_formats=supported_format_labels(policy.allowed_types),
        supported_types=sorted(policy.allowed_types),
        max_file_size=format_size(policy.max_size_bytes),
        max_file_size_bytes=policy.max_size_bytes,
    ).to_json()


@router.get("/test-aws")
async def test_storage(service: UploadService = Depends(get_upload_service)):
    REQUEST_COUNTER.labels(path="/test-aws").inc()
    try:
        status = await service.check_storage()
    except UploadError as exc:
        body = StorageCheckResponse(
            status="Storage connection failed",
            error=exc.message,
            code=getattr(exc, "backend_code", None) or str(exc.code),
        )
        return JSONResponse(status_code=500, content=body.to_json())
    body = StorageCheckResponse(
        status="Storage connection successful",
        bucket=status.bucket,
        region=status.region,
    )
    return body.to_json()


@router.get("/metrics", response_class=PlainTextResponse)
async def metrics():
    return PlainTextResponse(generate_latest().decode("utf-8"), media_type=CONTENT_TYPE_LATEST)
