from dataclasses import dataclass


@dataclass(frozen=True)
class UploadPolicy:
    allowed_types: frozenset[str] = frozenset({"image/jpeg", "image/png", "image/webp"})
    max_size_bytes: int = 100 * 1024
    max_files: int = 1
    folder_prefix: str = "uploads"


@dataclass
class UploadRequest:
    payload: bytes | None
    content_type: str
    filename: str
    declared_size: int | None = None
    file_count: int = 1

    @property
    def size(self) -> int:
        # Measured from the received bytes; declared_size is informational only.
        return len(self.payload) if self.payload is not None else 0


@dataclass(frozen=True)
class UploadResult:
    success: bool
    key: str | None = None
    original_filename: str | None = None
    size: int | None = None
    url: str | None = None
    error_code: str | None = None
    message: str = ""

    @classmethod
    def failed(cls, code: str, message: str) -> "UploadResult":
        return cls(success=False, error_code=code, message=message)
