"""Name and metadata validators.

All validators are total: they return ``False`` for invalid input and never
raise, leaving the choice of error to the caller.
"""
import re
from typing import Any, Mapping, Optional

from .constants import (
    MAX_CONTAINER_NAME_LENGTH,
    MAX_OBJECT_NAME_LENGTH,
    MAX_META_KEY_LENGTH,
    MAX_META_VALUE_LENGTH,
)
from .exceptions import (
    ArgumentError,
    ContainerNameError,
    StorageItemNameError,
    MetadataKeyError,
    MetadataValueError,
)
from .utils import strip_slash_prefix

# RFC 7230 token characters; metadata keys become part of a header name
_HEADER_TOKEN = re.compile(r"[!#$%&'*+.^_`|~0-9A-Za-z-]+")
# Control characters other than horizontal tab
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")


def validate_container_name(name: Any) -> bool:
    """Non-empty, at most 256 characters, no ``/`` or ``?``."""
    if not isinstance(name, str) or not name:
        return False
    if len(name) > MAX_CONTAINER_NAME_LENGTH:
        return False
    return "/" not in name and "?" not in name


def validate_object_name(name: Any) -> bool:
    """Non-empty once leading slashes are stripped, at most 128 characters."""
    if not isinstance(name, str) or not strip_slash_prefix(name):
        return False
    return len(name) <= MAX_OBJECT_NAME_LENGTH


def validate_metadata_key(key: Any) -> bool:
    """Header token characters only, at most 128 characters."""
    if not isinstance(key, str) or len(key) > MAX_META_KEY_LENGTH:
        return False
    return _HEADER_TOKEN.fullmatch(key) is not None


def validate_metadata_value(value: Any) -> bool:
    """At most 128 characters and no CR, LF or other control characters."""
    if not isinstance(value, str) or len(value) > MAX_META_VALUE_LENGTH:
        return False
    return _CONTROL_CHARS.search(value) is None


def require(**arguments: Any) -> None:
    """Raise ``ArgumentError`` for the first missing or empty argument.

    Example:
        require(storage_url=url, container_name=name)
    """
    for argument, value in arguments.items():
        if value is None or (isinstance(value, str) and not value):
            raise ArgumentError(argument=argument)


def check_container_name(name: str) -> str:
    if not validate_container_name(name):
        raise ContainerNameError(name)
    return name


def check_object_name(name: str) -> str:
    if not validate_object_name(name):
        raise StorageItemNameError(name)
    return name


def normalize_metadata(metadata: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """Validate metadata entries and collapse case-insensitive duplicate keys.

    Header names are case-insensitive, so two keys differing only by case name
    the same entry; the one seen last wins.

    Raises:
        MetadataKeyError: If a key is empty or too long
        MetadataValueError: If a value is too long
    """
    if not metadata:
        return {}

    entries: dict[str, tuple[str, str]] = {}
    for key, value in metadata.items():
        value = "" if value is None else str(value)
        if not validate_metadata_key(key):
            raise MetadataKeyError(key)
        if not validate_metadata_value(value):
            raise MetadataValueError(value)
        entries[key.lower()] = (key, value)

    return {key: value for key, value in entries.values()}
