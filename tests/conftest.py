import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.integrations.storage.base import StorageBackend, StorageBackendError, StoredObject
from app.main import create_app


class FakeStorage(StorageBackend):
    name = "fake"

    def __init__(self, error: StorageBackendError | None = None):
        self.bucket = "test-bucket"
        self.region = "us-east-1"
        self.error = error
        self.puts: list[tuple[str, bytes, str]] = []
        self.head_calls = 0

    async def put_object(self, object_key: str, data: bytes, content_type: str) -> StoredObject:
        if self.error:
            raise self.error
        self.puts.append((object_key, data, content_type))
        return StoredObject(
            location=f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{object_key}",
            object_key=object_key,
            bucket=self.bucket,
        )

    async def head_bucket(self) -> None:
        self.head_calls += 1
        if self.error:
            raise self.error


def make_settings(**overrides) -> Settings:
    values = {
        "storage_provider": "s3",
        "s3_bucket": "test-bucket",
        "s3_region": "us-east-1",
        "s3_access_key": "AKIATESTKEY",
        "s3_secret_key": "super-secret-value",
        "upload_folder": "category",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture()
def client(settings, storage):
    with TestClient(create_app(settings, storage=storage)) as test_client:
        yield test_client
