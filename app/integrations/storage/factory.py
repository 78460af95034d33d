from app.core.config import Settings
from app.integrations.storage.base import StorageBackend
from app.integrations.storage.local import LocalStorageBackend
from app.integrations.storage.s3 import S3StorageBackend


def get_storage_backend(settings: Settings) -> StorageBackend:
    if settings.storage_provider == "local":
        return LocalStorageBackend(settings)
    return S3StorageBackend(settings)
