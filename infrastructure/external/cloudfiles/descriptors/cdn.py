"""CDN management request descriptors.

These address the CDN management URL rather than the storage URL.
"""
from __future__ import annotations

from typing import Optional

from ..base import CloudFilesRequest, HTTPMethod
from ..constants import DEFAULT_CDN_TTL, X_CDN_ENABLED, X_LOG_RETENTION, X_TTL
from ..exceptions import ArgumentError, ContainerNotPublicError
from ..models import Outcome
from ..utils import build_query, encode_container_name, join_uri
from ..validators import check_container_name, require
from .base import RequestDescriptor, ResponseKind


def _flag(value: bool) -> str:
    return "True" if value else "False"


class GetPublicContainers(RequestDescriptor):
    """GET the CDN URL: one CDN-enabled container name per line."""

    method = HTTPMethod.GET
    success_statuses = {200: Outcome.OK, 204: Outcome.NO_CONTENT}
    response_kind = ResponseKind.NAME_LIST

    def __init__(self, cdn_management_url: str, enabled_only: bool = True):
        require(cdn_management_url=cdn_management_url)
        super().__init__()
        self.cdn_management_url = cdn_management_url
        self.enabled_only = enabled_only

    def build_uri(self) -> str:
        query = build_query([("enabled_only", "true" if self.enabled_only else None)])
        return self.cdn_management_url.rstrip("/") + query


class CdnContainerDescriptor(RequestDescriptor):
    """Descriptor addressing ``{cdn_management_url}/{container}``."""

    error_statuses = {404: ContainerNotPublicError}

    def __init__(self, cdn_management_url: str, container_name: str):
        require(cdn_management_url=cdn_management_url, container_name=container_name)
        check_container_name(container_name)
        super().__init__()
        self.cdn_management_url = cdn_management_url
        self.container_name = container_name

    def build_uri(self) -> str:
        return join_uri(self.cdn_management_url, encode_container_name(self.container_name))


def _check_ttl(ttl: Optional[int]) -> Optional[int]:
    if ttl is not None and ttl < 0:
        raise ArgumentError("ttl must be non-negative", argument="ttl")
    return ttl


class MarkContainerAsPublic(CdnContainerDescriptor):
    """PUT publishes a container to the CDN; the response carries ``X-CDN-URI``."""

    method = HTTPMethod.PUT
    success_statuses = {201: Outcome.CREATED, 202: Outcome.ACCEPTED}
    error_statuses = {}
    response_kind = ResponseKind.CDN_URI

    def __init__(
        self,
        cdn_management_url: str,
        container_name: str,
        ttl: int = DEFAULT_CDN_TTL,
        log_retention: bool = False,
    ):
        super().__init__(cdn_management_url, container_name)
        self.ttl = _check_ttl(ttl)
        self.log_retention = log_retention

    def _apply(self, request: CloudFilesRequest) -> None:
        request.headers[X_CDN_ENABLED] = _flag(True)
        request.headers[X_TTL] = str(self.ttl)
        request.headers[X_LOG_RETENTION] = _flag(self.log_retention)


class SetPublicContainerDetails(CdnContainerDescriptor):
    """POST updates CDN enablement, TTL and log retention of a container."""

    method = HTTPMethod.POST
    success_statuses = {202: Outcome.ACCEPTED, 204: Outcome.NO_CONTENT}

    def __init__(
        self,
        cdn_management_url: str,
        container_name: str,
        cdn_enabled: bool,
        ttl: Optional[int] = None,
        log_retention: Optional[bool] = None,
    ):
        super().__init__(cdn_management_url, container_name)
        self.cdn_enabled = cdn_enabled
        self.ttl = _check_ttl(ttl)
        self.log_retention = log_retention

    def _apply(self, request: CloudFilesRequest) -> None:
        request.headers[X_CDN_ENABLED] = _flag(self.cdn_enabled)
        if self.ttl is not None:
            request.headers[X_TTL] = str(self.ttl)
        if self.log_retention is not None:
            request.headers[X_LOG_RETENTION] = _flag(self.log_retention)


class GetPublicContainerInformation(CdnContainerDescriptor):
    method = HTTPMethod.HEAD
    success_statuses = {200: Outcome.OK, 204: Outcome.NO_CONTENT}
    response_kind = ResponseKind.CDN_INFO
