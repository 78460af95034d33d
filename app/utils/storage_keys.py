import random
import re
import string
import time
from dataclasses import dataclass
from pathlib import PurePosixPath

TOKEN_ALPHABET = string.ascii_letters + string.digits
TOKEN_LENGTH = 6

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]+$")
_KEY_RE = re.compile(
    r"^(?:(?P<folder>.+)/)?(?P<timestamp>\d+)_(?P<token>[A-Za-z0-9]{%d})(?P<extension>\.[a-z0-9]+)?$" % TOKEN_LENGTH
)

_rng = random.Random()


@dataclass(frozen=True)
class ParsedKey:
    folder: str
    timestamp_ms: int
    token: str
    extension: str


def extension_of(filename: str) -> str:
    # Browsers on Windows may send full paths with backslashes.
    name = PurePosixPath(filename.replace("\\", "/")).name
    ext = PurePosixPath(name).suffix.lower()
    return ext if _EXTENSION_RE.match(ext) else ""


def random_token(length: int = TOKEN_LENGTH, rng: random.Random | None = None) -> str:
    return "".join((rng or _rng).choices(TOKEN_ALPHABET, k=length))


def generate_storage_key(
    folder_prefix: str,
    filename: str,
    now_ms: int | None = None,
    rng: random.Random | None = None,
) -> str:
    timestamp = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    name = f"{timestamp}_{random_token(rng=rng)}{extension_of(filename)}"
    folder = folder_prefix.strip("/")
    return f"{folder}/{name}" if folder else name


def parse_storage_key(key: str) -> ParsedKey:
    match = _KEY_RE.match(key)
    if not match:
        raise ValueError(f"not a generated storage key: {key!r}")
    return ParsedKey(
        folder=match.group("folder") or "",
        timestamp_ms=int(match.group("timestamp")),
        token=match.group("token"),
        extension=match.group("extension") or "",
    )
