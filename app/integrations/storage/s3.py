import asyncio
from urllib.parse import quote

import boto3
import structlog
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)

from app.core.config import Settings
from app.core.constants import StorageFailure
from app.integrations.storage.base import StorageBackend, StorageBackendError, StoredObject

logger = structlog.get_logger()

CREDENTIAL_CODES = {
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "ExpiredToken",
    "InvalidToken",
    "TokenRefreshRequired",
}
BUCKET_CODES = {"NoSuchBucket", "404", "NotFound"}
PERMISSION_CODES = {"AccessDenied", "AllAccessDisabled", "403", "Forbidden"}
REJECTED_CODES = {
    "EntityTooLarge",
    "InvalidArgument",
    "InvalidRequest",
    "KeyTooLongError",
    "MetadataTooLarge",
    "InvalidDigest",
    "BadDigest",
}


def classify_client_error(exc: ClientError) -> StorageBackendError:
    error = exc.response.get("Error", {})
    code = str(error.get("Code") or exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or "")
    if code in CREDENTIAL_CODES:
        kind = StorageFailure.CREDENTIALS
    elif code in BUCKET_CODES:
        kind = StorageFailure.BUCKET_NOT_FOUND
    elif code in PERMISSION_CODES:
        kind = StorageFailure.PERMISSION_DENIED
    elif code in REJECTED_CODES:
        kind = StorageFailure.REJECTED
    else:
        kind = StorageFailure.SERVICE_ERROR
    return StorageBackendError(kind, code or None, detail=str(error.get("Message", "")))


def classify_botocore_error(exc: BotoCoreError) -> StorageBackendError:
    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return StorageBackendError(StorageFailure.CREDENTIALS, type(exc).__name__)
    if isinstance(exc, (ConnectTimeoutError, ReadTimeoutError)):
        return StorageBackendError(StorageFailure.TIMEOUT, type(exc).__name__)
    if isinstance(exc, EndpointConnectionError):
        return StorageBackendError(StorageFailure.CONNECTIVITY, type(exc).__name__)
    return StorageBackendError(StorageFailure.SERVICE_ERROR, type(exc).__name__)


class S3StorageBackend(StorageBackend):
    name = "s3"

    def __init__(self, settings: Settings, client: BaseClient | None = None) -> None:
        self.settings = settings
        self.bucket = settings.s3_bucket
        self.region = settings.s3_region
        self.client = client or boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint or None,
            region_name=settings.s3_region or None,
            aws_access_key_id=settings.s3_access_key or None,
            aws_secret_access_key=settings.s3_secret_key or None,
            config=Config(
                signature_version="s3v4",
                connect_timeout=settings.storage_write_timeout_seconds,
                read_timeout=settings.storage_write_timeout_seconds,
                retries={"max_attempts": settings.s3_max_attempts, "mode": "standard"},
            ),
        )

    def public_url(self, object_key: str) -> str:
        encoded_key = quote(object_key, safe="/")
        public_base = self.settings.s3_public_base_url.rstrip("/")
        if public_base:
            return f"{public_base}/{encoded_key}"
        if self.settings.s3_endpoint:
            return f"{self.settings.s3_endpoint.rstrip('/')}/{self.bucket}/{encoded_key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{encoded_key}"

    def _call(self, operation: str, **params) -> dict:
        try:
            return getattr(self.client, operation)(**params)
        except ClientError as exc:
            failure = classify_client_error(exc)
        except BotoCoreError as exc:
            failure = classify_botocore_error(exc)
        logger.warning(
            "storage_error",
            operation=operation,
            bucket=self.bucket,
            kind=str(failure.kind),
            code=failure.code,
        )
        raise failure

    async def put_object(self, object_key: str, data: bytes, content_type: str) -> StoredObject:
        await asyncio.to_thread(
            self._call,
            "put_object",
            Bucket=self.bucket,
            Key=object_key,
            Body=data,
            ContentType=content_type,
        )
        return StoredObject(location=self.public_url(object_key), object_key=object_key, bucket=self.bucket)

    async def head_bucket(self) -> None:
        await asyncio.to_thread(self._call, "head_bucket", Bucket=self.bucket)
