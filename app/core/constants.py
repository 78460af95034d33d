from enum import StrEnum


class ErrorCode(StrEnum):
    MISSING_FILE = "missing_file"
    TOO_LARGE = "too_large"
    TOO_MANY_FILES = "too_many_files"
    UNSUPPORTED_TYPE = "unsupported_type"
    MALFORMED_REQUEST = "malformed_request"
    BACKEND_REJECTED = "backend_rejected"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    UNEXPECTED_ERROR = "unexpected_error"


class StorageFailure(StrEnum):
    CONNECTIVITY = "connectivity"
    CREDENTIALS = "credentials"
    BUCKET_NOT_FOUND = "bucket_not_found"
    PERMISSION_DENIED = "permission_denied"
    REJECTED = "rejected"
    TIMEOUT = "timeout"
    SERVICE_ERROR = "service_error"


FORMAT_LABELS = {
    "image/jpeg": "JPG",
    "image/png": "PNG",
    "image/webp": "WebP",
}

# Stable ordering for capability listings.
FORMAT_ORDER = ["image/jpeg", "image/png", "image/webp"]
