"""Authentication and account-level request descriptors."""
from __future__ import annotations

from typing import Optional

from ..base import CloudFilesRequest, HTTPMethod
from ..constants import USER_AGENT, X_AUTH_KEY, X_AUTH_USER
from ..exceptions import AuthenticationFailedError
from ..models import Outcome
from ..validators import require
from .base import ListingOptions, RequestDescriptor, ResponseKind


class GetAuthentication(RequestDescriptor):
    """GET the auth URL with user credentials."""

    method = HTTPMethod.GET
    success_statuses = {200: Outcome.OK, 204: Outcome.NO_CONTENT}
    error_statuses = {401: AuthenticationFailedError}
    response_kind = ResponseKind.ENDPOINT
    requires_auth = False

    def __init__(self, auth_url: str, username: str, api_key: str, user_agent: Optional[str] = None):
        require(auth_url=auth_url, username=username, api_key=api_key)
        super().__init__()
        self.auth_url = auth_url
        self.username = username
        self._api_key = api_key
        self.user_agent = user_agent

    def build_uri(self) -> str:
        return self.auth_url

    def _apply(self, request: CloudFilesRequest) -> None:
        request.headers[X_AUTH_USER] = self.username
        request.headers[X_AUTH_KEY] = self._api_key
        if self.user_agent:
            request.headers[USER_AGENT] = self.user_agent


class GetAccountInformation(RequestDescriptor):
    """HEAD the storage URL for container count and bytes used."""

    method = HTTPMethod.HEAD
    success_statuses = {200: Outcome.OK, 204: Outcome.NO_CONTENT}
    response_kind = ResponseKind.ACCOUNT_INFO

    def __init__(self, storage_url: str):
        require(storage_url=storage_url)
        super().__init__()
        self.storage_url = storage_url

    def build_uri(self) -> str:
        return self.storage_url


class GetContainers(RequestDescriptor):
    """GET the storage URL: one container name per line, or JSON summaries."""

    method = HTTPMethod.GET
    success_statuses = {200: Outcome.OK, 204: Outcome.NO_CONTENT}

    def __init__(
        self,
        storage_url: str,
        options: Optional[ListingOptions] = None,
        detailed: bool = False,
    ):
        require(storage_url=storage_url)
        super().__init__()
        self.storage_url = storage_url
        self.options = options or ListingOptions()
        self.detailed = detailed

    @property
    def response_kind(self) -> ResponseKind:  # type: ignore[override]
        return ResponseKind.CONTAINER_LIST if self.detailed else ResponseKind.NAME_LIST

    def build_uri(self) -> str:
        return self.storage_url.rstrip("/") + self.options.query(self.detailed)
