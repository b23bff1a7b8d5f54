"""Cloud Files data transfer objects."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field


# Progress sink: called with (bytes_transferred, total_bytes or None)
ProgressCallback = Callable[[int, Optional[int]], None]


class Outcome(str, Enum):
    """Meaning of a success status for a particular operation."""
    OK = "ok"
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    ACCEPTED = "accepted"
    NO_CONTENT = "no_content"
    PARTIAL_CONTENT = "partial_content"


class StorageEndpoint(BaseModel):
    """Authenticated session endpoint; replaced wholesale on re-authentication."""
    model_config = ConfigDict(frozen=True)

    storage_url: str
    auth_token: str
    cdn_management_url: Optional[str] = None

    @property
    def cdn_enabled(self) -> bool:
        return bool(self.cdn_management_url)


class AccountInfo(BaseModel):
    """Account usage from a HEAD on the storage URL."""
    container_count: int = 0
    bytes_used: int = 0
    metadata: dict[str, str] = Field(default_factory=dict)


class ContainerSummary(BaseModel):
    """One entry of a JSON container listing."""
    name: str
    count: int = 0
    bytes: int = 0


class ContainerInfo(BaseModel):
    """Container details from a HEAD on the container."""
    name: str
    object_count: int = 0
    bytes_used: int = 0
    metadata: dict[str, str] = Field(default_factory=dict)


class ObjectSummary(BaseModel):
    """One entry of a JSON object listing."""
    name: str
    hash: Optional[str] = None
    bytes: int = 0
    content_type: Optional[str] = None
    last_modified: Optional[datetime] = None


class StorageItemInfo(BaseModel):
    """Storage item details from response headers."""
    name: str
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None
    metadata: dict[str, str] = Field(default_factory=dict)


class CdnContainerInfo(BaseModel):
    """CDN publication state of a container."""
    name: str
    cdn_enabled: bool = False
    ttl: Optional[int] = None
    cdn_uri: Optional[str] = None
    cdn_ssl_uri: Optional[str] = None
    cdn_streaming_uri: Optional[str] = None
    log_retention: bool = False


@dataclass
class StorageItem:
    """A downloaded storage item: details plus an open body stream.

    The body must be consumed or closed; use as a context manager.
    """
    info: StorageItemInfo
    status_code: int
    _chunks: Callable[[int], Iterator[bytes]] = field(repr=False)
    _close: Callable[[], None] = field(repr=False)
    _closed: bool = field(default=False, repr=False)

    @property
    def name(self) -> str:
        return self.info.name

    @property
    def metadata(self) -> dict[str, str]:
        return self.info.metadata

    def iter_content(self, chunk_size: int = 65536) -> Iterator[bytes]:
        """Yield the body in chunks, closing the stream when exhausted."""
        try:
            yield from self._chunks(chunk_size)
        finally:
            self.close()

    def read(self) -> bytes:
        return b"".join(self.iter_content())

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
