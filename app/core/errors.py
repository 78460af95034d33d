from app.core.constants import ErrorCode


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings are missing."""


class UploadError(Exception):
    status_code: int = 500
    code: ErrorCode = ErrorCode.UNEXPECTED_ERROR
    default_message: str = "File upload failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ClientInputError(UploadError):
    status_code = 400
    code = ErrorCode.MALFORMED_REQUEST
    default_message = "Invalid upload request"


class MalformedRequest(ClientInputError):
    code = ErrorCode.MALFORMED_REQUEST
    default_message = "Malformed multipart body"


class PolicyViolation(ClientInputError):
    pass


class MissingFile(PolicyViolation):
    code = ErrorCode.MISSING_FILE
    default_message = "No file uploaded"


class TooLarge(PolicyViolation):
    code = ErrorCode.TOO_LARGE
    default_message = "File size too large"


class TooManyFiles(PolicyViolation):
    code = ErrorCode.TOO_MANY_FILES
    default_message = "Too many files in request"


class UnsupportedType(PolicyViolation):
    code = ErrorCode.UNSUPPORTED_TYPE
    default_message = "Unsupported file type"


class BackendRejected(ClientInputError):
    code = ErrorCode.BACKEND_REJECTED
    default_message = "Storage rejected the uploaded file"

    def __init__(self, message: str | None = None, backend_code: str | None = None) -> None:
        super().__init__(message)
        self.backend_code = backend_code


class BackendUnavailable(UploadError):
    status_code = 500
    code = ErrorCode.BACKEND_UNAVAILABLE
    default_message = "Storage backend unavailable"

    def __init__(self, message: str | None = None, backend_code: str | None = None) -> None:
        super().__init__(message)
        self.backend_code = backend_code


class UnexpectedError(UploadError):
    status_code = 500
    code = ErrorCode.UNEXPECTED_ERROR
    default_message = "File upload failed"
