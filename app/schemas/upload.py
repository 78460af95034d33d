from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.upload import UploadResult


class APIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UploadResponse(APIModel):
    success: bool
    message: str
    image_url: str | None = Field(default=None, alias="imageUrl")
    file_name: str | None = Field(default=None, alias="fileName")
    original_name: str | None = Field(default=None, alias="originalName")
    file_size: int | None = Field(default=None, alias="fileSize")
    code: str | None = None
    backend_code: str | None = Field(default=None, alias="backendCode")

    @classmethod
    def from_result(cls, result: UploadResult, backend_code: str | None = None) -> "UploadResponse":
        return cls(
            success=result.success,
            message=result.message,
            image_url=result.url,
            file_name=result.key,
            original_name=result.original_filename,
            file_size=result.size,
            code=result.error_code,
            backend_code=backend_code,
        )


class HealthResponse(APIModel):
    status: str
    timestamp: datetime
    supported_formats: list[str] = Field(alias="supportedFormats")
    supported_types: list[str] = Field(alias="supportedTypes")
    max_file_size: str = Field(alias="maxFileSize")
    max_file_size_bytes: int = Field(alias="maxFileSizeBytes")


class StorageCheckResponse(APIModel):
    status: str
    bucket: str | None = None
    region: str | None = None
    error: str | None = None
    code: str | None = None
