"""Container request descriptors."""
from __future__ import annotations

from typing import Mapping, Optional

from ..base import CloudFilesRequest, HTTPMethod
from ..constants import CONTAINER_META_PREFIX
from ..exceptions import ContainerNotEmptyError, ContainerNotFoundError
from ..models import Outcome
from ..utils import encode_container_name, join_uri
from ..validators import check_container_name, normalize_metadata, require
from .base import ListingOptions, RequestDescriptor, ResponseKind


class ContainerDescriptor(RequestDescriptor):
    """Descriptor addressing ``{storage_url}/{container}``."""

    error_statuses = {404: ContainerNotFoundError}

    def __init__(self, storage_url: str, container_name: str):
        require(storage_url=storage_url, container_name=container_name)
        check_container_name(container_name)
        super().__init__()
        self.storage_url = storage_url
        self.container_name = container_name

    def build_uri(self) -> str:
        return join_uri(self.storage_url, encode_container_name(self.container_name))


class CreateContainer(ContainerDescriptor):
    """PUT a container; 202 means it was already there."""

    method = HTTPMethod.PUT
    success_statuses = {201: Outcome.CREATED, 202: Outcome.ALREADY_EXISTS}
    error_statuses = {}


class DeleteContainer(ContainerDescriptor):
    method = HTTPMethod.DELETE
    success_statuses = {204: Outcome.NO_CONTENT}
    error_statuses = {404: ContainerNotFoundError, 409: ContainerNotEmptyError}


class GetContainerInformation(ContainerDescriptor):
    """HEAD a container for object count, bytes used and metadata."""

    method = HTTPMethod.HEAD
    success_statuses = {200: Outcome.OK, 204: Outcome.NO_CONTENT}
    response_kind = ResponseKind.CONTAINER_INFO


class SetContainerMetaInformation(ContainerDescriptor):
    method = HTTPMethod.POST
    success_statuses = {202: Outcome.ACCEPTED, 204: Outcome.NO_CONTENT}

    def __init__(self, storage_url: str, container_name: str, metadata: Mapping[str, str]):
        require(metadata=metadata)
        super().__init__(storage_url, container_name)
        self.metadata = normalize_metadata(metadata)

    def _apply(self, request: CloudFilesRequest) -> None:
        for key, value in self.metadata.items():
            request.headers[CONTAINER_META_PREFIX + key] = value


class GetContainerItemList(ContainerDescriptor):
    """GET a container: one object name per line, or JSON summaries."""

    method = HTTPMethod.GET
    success_statuses = {200: Outcome.OK, 204: Outcome.NO_CONTENT}

    def __init__(
        self,
        storage_url: str,
        container_name: str,
        options: Optional[ListingOptions] = None,
        detailed: bool = False,
    ):
        super().__init__(storage_url, container_name)
        self.options = options or ListingOptions()
        self.detailed = detailed

    @property
    def response_kind(self) -> ResponseKind:  # type: ignore[override]
        return ResponseKind.OBJECT_LIST if self.detailed else ResponseKind.NAME_LIST

    def build_uri(self) -> str:
        return super().build_uri() + self.options.query(self.detailed)
