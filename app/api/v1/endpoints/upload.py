from collections.abc import AsyncIterator

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from python_multipart.multipart import parse_options_header
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser

from app.api.deps import get_app_settings, get_upload_service
from app.api.metrics import REQUEST_COUNTER, UPLOAD_COUNTER
from app.core.config import Settings
from app.core.errors import MalformedRequest, TooManyFiles
from app.models.upload import UploadPolicy, UploadRequest
from app.schemas.upload import UploadResponse
from app.services.upload_service import UploadService

router = APIRouter(tags=["upload"])
logger = structlog.get_logger()

MAX_FORM_FIELDS = 100


class ClosingBoundaryWatch:
    """Passes body chunks through and records whether the closing delimiter arrived."""

    def __init__(self, boundary: bytes) -> None:
        self.marker = b"--" + boundary + b"--"
        self.seen = False
        self._tail = b""

    async def wrap(self, stream: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        async for chunk in stream:
            if not self.seen:
                window = self._tail + chunk
                self.seen = self.marker in window
                self._tail = window[-(len(self.marker) - 1) :]
            yield chunk


async def read_upload_request(request: Request, field_name: str, policy: UploadPolicy) -> UploadRequest:
    content_type = request.headers.get("content-type", "")
    mime, params = parse_options_header(content_type)
    if mime.strip().lower() != b"multipart/form-data":
        raise MalformedRequest("Request body must be multipart/form-data")
    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedRequest("Malformed multipart body: missing boundary")

    watch = ClosingBoundaryWatch(boundary)
    # One extra file part is let through so the count check reports it in policy order.
    parser = MultiPartParser(
        request.headers,
        watch.wrap(request.stream()),
        max_files=policy.max_files + 1,
        max_fields=MAX_FORM_FIELDS,
    )
    try:
        form = await parser.parse()
    except MultiPartException as exc:
        if exc.message.startswith("Too many files"):
            raise TooManyFiles(f"Too many files. Maximum {policy.max_files} file(s) per request.") from exc
        raise MalformedRequest(f"Malformed multipart body: {exc.message}") from exc

    try:
        if not watch.seen:
            raise MalformedRequest("Malformed multipart body: missing closing boundary")
        files = [
            (name, value)
            for name, value in form.multi_items()
            if isinstance(value, UploadFile) and value.filename
        ]
        if not files:
            return UploadRequest(payload=None, content_type="", filename="", file_count=0)
        matching = [value for name, value in files if name == field_name]
        if not matching:
            raise MalformedRequest(f'Unexpected file field. Please use "{field_name}" field name.')

        upload = matching[0]
        # Anything past max + 1 bytes cannot change the outcome of the size check.
        payload = await upload.read(policy.max_size_bytes + 1)
        return UploadRequest(
            payload=payload,
            content_type=upload.content_type or "",
            filename=upload.filename or "",
            declared_size=upload.size,
            file_count=len(files),
        )
    finally:
        await form.close()


@router.post("/upload")
async def upload_image(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    service: UploadService = Depends(get_upload_service),
):
    REQUEST_COUNTER.labels(path="/upload").inc()
    upload_request = await read_upload_request(request, settings.upload_field_name, service.policy)
    logger.info(
        "upload_received",
        original_name=upload_request.filename,
        content_type=upload_request.content_type,
        size=upload_request.size,
        declared_size=upload_request.declared_size,
    )
    result = await service.upload(upload_request)
    UPLOAD_COUNTER.labels(outcome="success").inc()
    return JSONResponse(status_code=200, content=UploadResponse.from_result(result).to_json())
