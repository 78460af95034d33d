from collections.abc import Iterable

from app.core.constants import FORMAT_LABELS, FORMAT_ORDER


def format_size(size_bytes: int) -> str:
    if size_bytes >= 1024 * 1024 and size_bytes % (1024 * 1024) == 0:
        return f"{size_bytes // (1024 * 1024)}MB"
    if size_bytes >= 1024 and size_bytes % 1024 == 0:
        return f"{size_bytes // 1024}KB"
    return f"{size_bytes}B"


def format_label(mime_type: str) -> str:
    if mime_type in FORMAT_LABELS:
        return FORMAT_LABELS[mime_type]
    return mime_type.rsplit("/", 1)[-1].upper()


def supported_format_labels(mime_types: Iterable[str]) -> list[str]:
    ordered = sorted(
        set(mime_types),
        key=lambda m: (FORMAT_ORDER.index(m) if m in FORMAT_ORDER else len(FORMAT_ORDER), m),
    )
    labels: list[str] = []
    for mime in ordered:
        label = format_label(mime)
        if label not in labels:
            labels.append(label)
    return labels
