"""Storage item (object) request descriptors."""
from __future__ import annotations

from typing import BinaryIO, Mapping, Optional

from core.logging_config import get_logger
from .. import mime_types
from ..base import CloudFilesRequest, FileSystem, HTTPMethod
from ..constants import DESTINATION, GET_ITEM_REQUEST_HEADERS, OBJECT_META_PREFIX
from ..exceptions import (
    ArgumentError,
    ContainerNotFoundError,
    NotModifiedError,
    PreconditionFailedError,
    StorageItemNotFoundError,
)
from ..filesystem import LocalFileSystem
from ..models import Outcome, ProgressCallback
from ..utils import (
    clean_file_path,
    encode_container_name,
    encode_object_name,
    join_uri,
    stream_length,
)
from ..validators import (
    check_container_name,
    check_object_name,
    normalize_metadata,
    require,
)
from .base import RequestDescriptor, ResponseKind

logger = get_logger(__name__)


class StorageItemDescriptor(RequestDescriptor):
    """Descriptor addressing ``{storage_url}/{container}/{object}``."""

    error_statuses = {404: StorageItemNotFoundError}

    def __init__(self, storage_url: str, container_name: str, object_name: str):
        require(storage_url=storage_url, container_name=container_name, object_name=object_name)
        check_container_name(container_name)
        check_object_name(object_name)
        super().__init__()
        self.storage_url = storage_url
        self.container_name = container_name
        self.object_name = object_name

    def build_uri(self) -> str:
        return join_uri(
            self.storage_url,
            encode_container_name(self.container_name),
            encode_object_name(self.object_name),
        )

    @property
    def result_name(self) -> str:
        """Name of the storage item a success response describes."""
        return self.object_name


class PutStorageItem(StorageItemDescriptor):
    """PUT a storage item from an open stream or a local file.

    A caller-provided ``stream`` stays owned by the caller and is never closed
    here. With ``local_file_path`` the descriptor opens the file when applied
    and closes it in ``release``.
    """

    method = HTTPMethod.PUT
    success_statuses = {201: Outcome.CREATED}
    error_statuses = {404: ContainerNotFoundError}
    response_kind = ResponseKind.UPLOAD

    def __init__(
        self,
        storage_url: str,
        container_name: str,
        object_name: str,
        *,
        stream: Optional[BinaryIO] = None,
        local_file_path: Optional[str] = None,
        metadata: Optional[Mapping[str, str]] = None,
        content_type: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
        filesystem: Optional[FileSystem] = None,
    ):
        if stream is None and not local_file_path:
            raise ArgumentError("Either stream or local_file_path is required", argument="stream")
        if stream is not None and local_file_path:
            raise ArgumentError("Pass either stream or local_file_path, not both", argument="stream")
        super().__init__(storage_url, container_name, object_name)

        self.metadata = normalize_metadata(metadata)
        self.local_file_path = clean_file_path(local_file_path) if local_file_path else None
        self._stream = stream
        self._owned_stream: Optional[BinaryIO] = None
        self._explicit_content_type = content_type
        self._progress = progress
        self._filesystem = filesystem or LocalFileSystem()

    @property
    def replayable(self) -> bool:
        return False

    @property
    def content_type(self) -> str:
        """Explicit type, else resolved from the local path or object name."""
        if self._explicit_content_type:
            return self._explicit_content_type
        return mime_types.resolve(self.local_file_path or self.object_name)

    def _apply(self, request: CloudFilesRequest) -> None:
        for key, value in self.metadata.items():
            request.headers[OBJECT_META_PREFIX + key] = value

        request.allow_write_stream_buffering = False
        request.content_type = self.content_type
        payload, length = self._open_payload()
        request.set_content(payload, self._progress, length)

    def _open_payload(self) -> tuple[BinaryIO, Optional[int]]:
        if self._stream is not None:
            return self._stream, stream_length(self._stream)

        path = self.local_file_path
        try:
            self._owned_stream = self._filesystem.open_read(path)
        except OSError as e:
            raise ArgumentError(f"Cannot open local file {path!r}: {e}", argument="local_file_path") from e
        logger.debug("Opened upload source", path=path)
        return self._owned_stream, self._filesystem.size(path)

    def release(self) -> None:
        if self._owned_stream is not None:
            stream, self._owned_stream = self._owned_stream, None
            stream.close()
            logger.debug("Released upload source", path=self.local_file_path)


class GetStorageItem(StorageItemDescriptor):
    """GET a storage item; the body is streamed back to the caller."""

    method = HTTPMethod.GET
    success_statuses = {200: Outcome.OK, 206: Outcome.PARTIAL_CONTENT}
    error_statuses = {
        304: NotModifiedError,
        404: StorageItemNotFoundError,
        412: PreconditionFailedError,
    }
    response_kind = ResponseKind.STORAGE_ITEM
    streams_response = True

    def __init__(
        self,
        storage_url: str,
        container_name: str,
        object_name: str,
        request_headers: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(storage_url, container_name, object_name)
        headers = dict(request_headers or {})
        for key in headers:
            if key.lower() not in GET_ITEM_REQUEST_HEADERS:
                raise ArgumentError(f"Header {key!r} is not allowed on GET", argument="request_headers")
        self.request_headers = headers

    def _apply(self, request: CloudFilesRequest) -> None:
        for key, value in self.request_headers.items():
            request.headers[key] = value


class GetStorageItemInformation(StorageItemDescriptor):
    """HEAD a storage item for content type, length, ETag and metadata."""

    method = HTTPMethod.HEAD
    success_statuses = {200: Outcome.OK, 204: Outcome.NO_CONTENT}
    response_kind = ResponseKind.STORAGE_ITEM_INFO


class SetStorageItemMetaInformation(StorageItemDescriptor):
    """POST replaces the storage item's metadata; 202 Accepted."""

    method = HTTPMethod.POST
    success_statuses = {202: Outcome.ACCEPTED}

    def __init__(
        self,
        storage_url: str,
        container_name: str,
        object_name: str,
        metadata: Mapping[str, str],
    ):
        require(metadata=metadata)
        super().__init__(storage_url, container_name, object_name)
        self.metadata = normalize_metadata(metadata)

    def _apply(self, request: CloudFilesRequest) -> None:
        for key, value in self.metadata.items():
            request.headers[OBJECT_META_PREFIX + key] = value


class DeleteStorageItem(StorageItemDescriptor):
    method = HTTPMethod.DELETE
    success_statuses = {204: Outcome.NO_CONTENT}


class CopyStorageItem(StorageItemDescriptor):
    """COPY a storage item to ``Destination: /{container}/{object}``."""

    method = HTTPMethod.COPY
    success_statuses = {201: Outcome.CREATED}
    response_kind = ResponseKind.STORAGE_ITEM_INFO

    def __init__(
        self,
        storage_url: str,
        source_container: str,
        source_object: str,
        destination_container: str,
        destination_object: str,
        metadata: Optional[Mapping[str, str]] = None,
    ):
        require(destination_container=destination_container, destination_object=destination_object)
        super().__init__(storage_url, source_container, source_object)
        check_container_name(destination_container)
        check_object_name(destination_object)
        self.destination_container = destination_container
        self.destination_object = destination_object
        self.metadata = normalize_metadata(metadata)

    @property
    def result_name(self) -> str:
        return self.destination_object

    @property
    def destination(self) -> str:
        return "/" + "/".join([
            encode_container_name(self.destination_container),
            encode_object_name(self.destination_object),
        ])

    def _apply(self, request: CloudFilesRequest) -> None:
        request.headers[DESTINATION] = self.destination
        for key, value in self.metadata.items():
            request.headers[OBJECT_META_PREFIX + key] = value
