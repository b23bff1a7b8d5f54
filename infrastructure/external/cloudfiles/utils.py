"""Cloud Files utility functions."""
import os
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, BinaryIO, Iterable, Optional
from urllib.parse import quote, urlencode

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from .exceptions import TransportError


# URI utilities
def strip_slash_prefix(value: str) -> str:
    """Remove leading slashes: ``"/a/b"`` -> ``"a/b"``."""
    return value.lstrip("/")


def clean_file_path(path: str) -> str:
    """Normalize a local file path or ``file://`` URL."""
    if path.startswith("file://"):
        path = path[len("file://"):]
    return path


def encode_container_name(name: str) -> str:
    """Percent-encode a container name; every reserved character is escaped."""
    return quote(name, safe="")


def encode_object_name(name: str) -> str:
    """Percent-encode an object name, keeping ``/`` for pseudo-directories."""
    return quote(strip_slash_prefix(name), safe="/")


def build_query(params: Iterable[tuple[str, Any]]) -> str:
    """Build a query string in the given order, skipping ``None`` values."""
    pairs = [(k, str(v)) for k, v in params if v is not None]
    if not pairs:
        return ""
    return "?" + urlencode(pairs, quote_via=quote)


def join_uri(base_url: str, *segments: str) -> str:
    """Join already-encoded path segments onto ``base_url``."""
    uri = base_url.rstrip("/")
    for segment in segments:
        uri = f"{uri}/{segment}"
    return uri


# Stream utilities
def stream_length(stream: BinaryIO) -> Optional[int]:
    """Bytes remaining in a seekable stream, or ``None`` if unknown."""
    seekable = getattr(stream, "seekable", None)
    try:
        if seekable is None or not seekable():
            return None
        position = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(position)
    except (OSError, ValueError):
        return None
    return max(end - position, 0)


# Header parsing utilities
def parse_int(value: Optional[str], default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


def parse_http_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 1123 date header (``Last-Modified``)."""
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


# Retry decorator for transport errors
def with_retry(
    max_attempts: int = 3,
    wait_multiplier: float = 1,
    wait_max: float = 10
):
    """Decorator to retry a caller's operation on transport errors.

    The client never retries on its own; wrap calls that are safe to repeat.

    Args:
        max_attempts: Maximum number of attempts
        wait_multiplier: Exponential backoff multiplier
        wait_max: Maximum wait time between retries

    Example:
        @with_retry(max_attempts=5)
        def fetch():
            return conn.get_storage_item_information("photos", "cat.jpg")
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=wait_multiplier, max=wait_max),
        retry=retry_if_exception_type(TransportError),
        reraise=True
    )
