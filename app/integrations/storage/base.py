from dataclasses import dataclass

from app.core.constants import StorageFailure


@dataclass(frozen=True)
class StoredObject:
    location: str
    object_key: str
    bucket: str


class StorageBackendError(Exception):
    """Backend failure reduced to a failure kind and the provider's native code."""

    def __init__(self, kind: StorageFailure, code: str | None = None, detail: str = "") -> None:
        self.kind = kind
        self.code = code
        self.detail = detail
        super().__init__(f"{kind}: {code or 'unknown'}")


class StorageBackend:
    name: str = "base"
    bucket: str = ""
    region: str = ""

    async def put_object(self, object_key: str, data: bytes, content_type: str) -> StoredObject:
        raise NotImplementedError

    async def head_bucket(self) -> None:
        raise NotImplementedError
