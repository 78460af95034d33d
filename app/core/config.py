from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.errors import ConfigurationError
from app.models.upload import UploadPolicy

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_env: Literal["dev", "staging", "prod"] = "dev"
    app_name: str = "Image Upload API"
    api_prefix: str = ""
    debug: bool = False
    log_level: str = "INFO"
    cors_allow_origins: str = "http://localhost:5173,http://localhost:3000"

    storage_provider: Literal["s3", "local"] = "s3"
    storage_local_dir: str = "./storage"
    storage_max_file_size: int = Field(default=100 * 1024, gt=0)
    storage_max_files: int = Field(default=1, ge=1)
    storage_allowed_mime: str = "image/jpeg,image/png,image/webp"
    storage_write_timeout_seconds: float = Field(default=30.0, gt=0)
    upload_folder: str = "uploads"
    upload_field_name: str = "uploadImage"

    s3_endpoint: str = ""
    s3_region: str = "us-east-1"
    s3_bucket: str = ""
    s3_access_key: str = ""
    s3_secret_key: str = ""
    s3_public_base_url: str = ""
    s3_max_attempts: int = Field(default=1, ge=1)

    @property
    def allowed_mimes(self) -> frozenset[str]:
        return frozenset(m.strip() for m in self.storage_allowed_mime.split(",") if m.strip())

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]

    def upload_policy(self) -> UploadPolicy:
        return UploadPolicy(
            allowed_types=self.allowed_mimes,
            max_size_bytes=self.storage_max_file_size,
            max_files=self.storage_max_files,
            folder_prefix=self.upload_folder.strip("/"),
        )

    def check_required(self) -> None:
        """Fail fast on settings the service cannot run without."""
        missing = []
        if not self.allowed_mimes:
            missing.append("storage_allowed_mime")
        if self.storage_provider == "s3":
            if not self.s3_bucket:
                missing.append("s3_bucket")
            if not self.s3_region and not self.s3_endpoint:
                missing.append("s3_region")
        if missing:
            raise ConfigurationError(f"missing required settings: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    return Settings()
