from app.core.errors import MissingFile, TooLarge, TooManyFiles, UnsupportedType
from app.models.upload import UploadPolicy, UploadRequest
from app.utils.formatting import format_size, supported_format_labels


def validate(request: UploadRequest, policy: UploadPolicy) -> None:
    """Check an upload against policy, raising the first violation found.

    Order is fixed: missing file, size, file count, media type. Size is taken
    from the received payload, never from the declared size.
    """
    if request.payload is None:
        raise MissingFile()
    if request.size > policy.max_size_bytes:
        raise TooLarge(f"File size too large. Maximum {format_size(policy.max_size_bytes)} allowed.")
    if request.file_count > policy.max_files:
        raise TooManyFiles(f"Too many files. Maximum {policy.max_files} file(s) per request.")
    if request.content_type not in policy.allowed_types:
        labels = supported_format_labels(policy.allowed_types)
        raise UnsupportedType(f"Only {_join_labels(labels)} files are allowed!")


def _join_labels(labels: list[str]) -> str:
    if len(labels) <= 2:
        return " and ".join(labels)
    return f"{', '.join(labels[:-1])}, and {labels[-1]}"
