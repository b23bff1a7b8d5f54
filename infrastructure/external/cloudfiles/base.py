"""Collaborator protocols and the generic outbound request / inbound response."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Callable, Iterator, Optional, Protocol, Union, runtime_checkable

import httpx

from .exceptions import TransportError
from .models import ProgressCallback, StorageEndpoint


class HTTPMethod(str, Enum):
    """HTTP methods used by the storage API."""
    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    HEAD = "HEAD"
    DELETE = "DELETE"
    COPY = "COPY"


class CloudFilesRequest:
    """Outbound request populated by a request descriptor's ``apply``.

    Headers are case-insensitive. The payload, if any, is an open binary stream
    read in chunks by ``iter_content``; the request never closes it.
    """

    def __init__(self, uri: str = "", method: Union[str, HTTPMethod] = HTTPMethod.GET):
        self.uri = uri
        self.method = method.value if isinstance(method, HTTPMethod) else method
        self.headers = httpx.Headers()
        self.content_type: Optional[str] = None
        self.content_length: Optional[int] = None
        self.allow_write_stream_buffering = True
        self._stream: Optional[BinaryIO] = None
        self._progress: Optional[ProgressCallback] = None

    def set_content(
        self,
        stream: BinaryIO,
        progress: Optional[ProgressCallback] = None,
        content_length: Optional[int] = None,
    ) -> None:
        self._stream = stream
        self._progress = progress
        self.content_length = content_length

    @property
    def has_content(self) -> bool:
        return self._stream is not None

    def iter_content(self, chunk_size: int = 65536) -> Iterator[bytes]:
        """Yield the payload in chunks, notifying the progress sink.

        The sink receives ``(bytes_sent, total_bytes)`` after every chunk; the
        last call reports completion. A stream closed mid-transfer raises
        ``TransportError`` rather than ending the upload early.
        """
        if self._stream is None:
            return
        stream = self._stream
        total = self.content_length
        sent = 0
        last_report: Optional[tuple[int, Optional[int]]] = None

        while True:
            try:
                chunk = stream.read(chunk_size)
            except (ValueError, OSError) as e:
                raise TransportError(f"Upload stream failed after {sent} bytes: {e}") from e
            if not chunk:
                break
            sent += len(chunk)
            if self._progress is not None:
                last_report = (sent, total)
                self._progress(sent, total)
            yield chunk

        if self._progress is not None:
            final = (sent, total if total is not None else sent)
            if final != last_report:
                self._progress(*final)

    def __repr__(self):
        return f"<CloudFilesRequest {self.method} {self.uri}>"


@dataclass
class RawResponse:
    """Status, headers and body as returned by a transport."""
    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes = b""
    reason: str = ""
    _stream: Optional[Callable[[int], Iterator[bytes]]] = field(default=None, repr=False)
    _close: Optional[Callable[[], None]] = field(default=None, repr=False)

    def __post_init__(self):
        if not isinstance(self.headers, httpx.Headers):
            self.headers = httpx.Headers(self.headers)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_streaming(self) -> bool:
        return self._stream is not None

    def iter_bytes(self, chunk_size: int = 65536) -> Iterator[bytes]:
        if self._stream is None:
            if self.body:
                yield self.body
            return
        yield from self._stream(chunk_size)

    def read(self) -> bytes:
        """Drain a streaming body into ``body`` and close it."""
        if self._stream is not None:
            try:
                self.body = b"".join(self._stream(65536))
            finally:
                self._stream = None
                self.close()
        return self.body

    def close(self) -> None:
        if self._close is not None:
            close, self._close = self._close, None
            close()

    def text(self) -> str:
        return self.read().decode("utf-8")


@runtime_checkable
class Transport(Protocol):
    """Sends an outbound request and returns the raw response."""

    def send(self, request: CloudFilesRequest, *, stream: bool = False) -> RawResponse:
        """Send request; with ``stream=True`` the body is left unread."""
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class FileSystem(Protocol):
    """Local files used as upload sources and download targets."""

    def open_read(self, path: str) -> BinaryIO:
        ...

    def open_write(self, path: str) -> BinaryIO:
        ...

    def size(self, path: str) -> Optional[int]:
        ...


@runtime_checkable
class Authenticator(Protocol):
    """Acquires a storage endpoint (token, storage URL, CDN URL)."""

    def authenticate(self) -> StorageEndpoint:
        ...
