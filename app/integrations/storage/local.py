import asyncio
from pathlib import Path
from urllib.parse import quote

from app.core.config import Settings
from app.core.constants import StorageFailure
from app.integrations.storage.base import StorageBackend, StorageBackendError, StoredObject


class LocalStorageBackend(StorageBackend):
    name = "local"

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.base_dir = Path(settings.storage_local_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.bucket = "local"
        self.region = "local"

    def resolve(self, object_key: str) -> Path:
        target = (self.base_dir / object_key).resolve()
        if not target.is_relative_to(self.base_dir):
            raise StorageBackendError(StorageFailure.REJECTED, "InvalidKey")
        return target

    def _write(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        # Write then rename so readers never see a partial object.
        tmp = target.with_name(f".{target.name}.part")
        tmp.write_bytes(data)
        tmp.replace(target)

    async def put_object(self, object_key: str, data: bytes, content_type: str) -> StoredObject:
        target = self.resolve(object_key)
        try:
            await asyncio.to_thread(self._write, target, data)
        except PermissionError as exc:
            raise StorageBackendError(StorageFailure.PERMISSION_DENIED, "EACCES") from exc
        except OSError as exc:
            raise StorageBackendError(StorageFailure.SERVICE_ERROR, type(exc).__name__) from exc
        prefix = self.settings.api_prefix.rstrip("/")
        return StoredObject(
            location=f"{prefix}/public/{quote(object_key, safe='/')}",
            object_key=object_key,
            bucket=self.bucket,
        )

    async def head_bucket(self) -> None:
        if not self.base_dir.is_dir():
            raise StorageBackendError(StorageFailure.BUCKET_NOT_FOUND, "NoSuchBucket")
