import asyncio
from dataclasses import dataclass

import structlog

from app.core.constants import StorageFailure
from app.core.errors import BackendRejected, BackendUnavailable, UnexpectedError
from app.integrations.storage.base import StorageBackend, StorageBackendError
from app.models.upload import UploadPolicy, UploadRequest, UploadResult
from app.services.validation_service import validate
from app.utils.storage_keys import generate_storage_key

logger = structlog.get_logger()

FAILURE_MESSAGES = {
    StorageFailure.CONNECTIVITY: "Could not reach the storage service",
    StorageFailure.CREDENTIALS: "Storage credentials were rejected",
    StorageFailure.BUCKET_NOT_FOUND: "Storage bucket does not exist",
    StorageFailure.PERMISSION_DENIED: "Access denied to the storage bucket",
    StorageFailure.REJECTED: "Storage rejected the uploaded file",
    StorageFailure.TIMEOUT: "Storage service timed out",
    StorageFailure.SERVICE_ERROR: "Storage service error",
}


@dataclass(frozen=True)
class StorageStatus:
    bucket: str
    region: str


def translate_storage_error(exc: StorageBackendError) -> BackendUnavailable | BackendRejected:
    message = FAILURE_MESSAGES.get(exc.kind, FAILURE_MESSAGES[StorageFailure.SERVICE_ERROR])
    if exc.kind == StorageFailure.REJECTED:
        return BackendRejected(message, backend_code=exc.code)
    return BackendUnavailable(message, backend_code=exc.code)


class UploadService:
    def __init__(self, storage: StorageBackend, policy: UploadPolicy, write_timeout: float = 30.0):
        self.storage = storage
        self.policy = policy
        self.write_timeout = write_timeout

    async def _with_deadline(self, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self.write_timeout)
        except TimeoutError as exc:
            raise StorageBackendError(StorageFailure.TIMEOUT, "RequestTimeout") from exc

    async def upload(self, request: UploadRequest) -> UploadResult:
        validate(request, self.policy)

        key = generate_storage_key(self.policy.folder_prefix, request.filename)
        log = logger.bind(key=key, original_name=request.filename, size=request.size)
        try:
            stored = await self._with_deadline(
                self.storage.put_object(key, request.payload, request.content_type)
            )
        except StorageBackendError as exc:
            log.warning("upload_failed", kind=str(exc.kind), backend_code=exc.code)
            raise translate_storage_error(exc) from exc
        except Exception as exc:
            log.exception("upload_failed_unexpected")
            raise UnexpectedError() from exc

        log.info("upload_stored", location=stored.location, bucket=stored.bucket)
        return UploadResult(
            success=True,
            url=stored.location,
            key=key,
            original_filename=request.filename,
            size=request.size,
            message="File uploaded successfully",
        )

    async def check_storage(self) -> StorageStatus:
        try:
            await self._with_deadline(self.storage.head_bucket())
        except StorageBackendError as exc:
            logger.warning("storage_check_failed", kind=str(exc.kind), backend_code=exc.code)
            raise translate_storage_error(exc) from exc
        return StorageStatus(
            bucket=self.storage.bucket,
            region=self.storage.region,
        )
