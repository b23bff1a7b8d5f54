"""Request descriptor base class.

A request descriptor captures the parameters of one logical storage operation.
It validates everything at construction, builds the target URI, and applies
method, headers and payload to a ``CloudFilesRequest``. Descriptors are
single-use: each call builds a fresh one from current parameters.
"""
from __future__ import annotations

import abc
from enum import Enum
from typing import ClassVar, Mapping, Optional, Type

from ..base import CloudFilesRequest, HTTPMethod
from ..constants import MAX_LIST_LIMIT
from ..exceptions import ArgumentError, StorageServiceError
from ..models import Outcome
from ..utils import build_query


class ResponseKind(str, Enum):
    """How a success response body/headers become a domain value."""
    UNIT = "unit"
    ENDPOINT = "endpoint"
    NAME_LIST = "name_list"
    CONTAINER_LIST = "container_list"
    OBJECT_LIST = "object_list"
    ACCOUNT_INFO = "account_info"
    CONTAINER_INFO = "container_info"
    STORAGE_ITEM_INFO = "storage_item_info"
    UPLOAD = "upload"
    STORAGE_ITEM = "storage_item"
    CDN_INFO = "cdn_info"
    CDN_URI = "cdn_uri"


class RequestDescriptor(abc.ABC):
    """Base request descriptor.

    Subclasses set the class-level operation table:

    - ``method``: fixed HTTP method
    - ``success_statuses``: success status -> ``Outcome`` for this operation
    - ``error_statuses``: operation-specific status -> exception overrides
    - ``response_kind``: how the translator builds the success value
    """

    method: ClassVar[HTTPMethod] = HTTPMethod.GET
    success_statuses: ClassVar[Mapping[int, Outcome]] = {200: Outcome.OK}
    error_statuses: ClassVar[Mapping[int, Type[StorageServiceError]]] = {}
    response_kind: ClassVar[ResponseKind] = ResponseKind.UNIT
    requires_auth: ClassVar[bool] = True
    streams_response: ClassVar[bool] = False

    container_name: Optional[str] = None
    object_name: Optional[str] = None

    def __init__(self) -> None:
        self._applied = False

    @property
    def replayable(self) -> bool:
        """Whether an equivalent request may be sent again (no payload)."""
        return True

    @abc.abstractmethod
    def build_uri(self) -> str:
        """Target URI, names percent-encoded."""

    def apply(self, request: CloudFilesRequest) -> None:
        """Populate ``request``; a descriptor may be applied only once."""
        if self._applied:
            raise RuntimeError(f"{self.__class__.__name__} has already been applied")
        self._applied = True
        request.uri = self.build_uri()
        request.method = self.method.value
        self._apply(request)

    def _apply(self, request: CloudFilesRequest) -> None:
        """Hook for subclasses: headers, content type, payload."""

    def create_request(self) -> CloudFilesRequest:
        request = CloudFilesRequest()
        self.apply(request)
        return request

    def release(self) -> None:
        """Release resources owned by the descriptor (open files)."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.method.value} {self.build_uri()}>"


class ListingOptions:
    """Listing query parameters, emitted as prefix, limit, offset, marker."""

    __slots__ = ("prefix", "limit", "offset", "marker")

    def __init__(
        self,
        prefix: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        marker: Optional[str] = None,
    ) -> None:
        if limit is not None and not 0 <= limit <= MAX_LIST_LIMIT:
            raise ArgumentError(f"limit must be between 0 and {MAX_LIST_LIMIT}", argument="limit")
        if offset is not None and offset < 0:
            raise ArgumentError("offset must be non-negative", argument="offset")
        self.prefix = prefix or None
        self.limit = limit
        self.offset = offset
        self.marker = marker or None

    def query(self, detailed: bool = False) -> str:
        return build_query([
            ("prefix", self.prefix),
            ("limit", self.limit),
            ("offset", self.offset),
            ("marker", self.marker),
            ("format", "json" if detailed else None),
        ])

    def __eq__(self, other):
        if not isinstance(other, ListingOptions):
            return NotImplemented
        return all(getattr(self, s) == getattr(other, s) for s in self.__slots__)

    def __repr__(self):
        fields = ", ".join(f"{s}={getattr(self, s)!r}" for s in self.__slots__)
        return f"ListingOptions({fields})"
