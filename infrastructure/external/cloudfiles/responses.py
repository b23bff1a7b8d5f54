"""Response translation: raw status/headers/body into domain values or errors.

The translator never raises for service errors. It returns a ``StorageResult``
carrying either the success value or the typed error; callers decide when to
``unwrap``. Status codes are interpreted through the descriptor's own table,
since the same code means different things to different operations (202 is
"already exists" for a container PUT and "accepted" for a metadata POST).
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, Type, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError

from core.logging_config import get_logger
from .base import RawResponse
from .constants import (
    ACCOUNT_META_PREFIX,
    CONTAINER_META_PREFIX,
    CONTENT_LENGTH,
    CONTENT_TYPE,
    ETAG,
    LAST_MODIFIED,
    OBJECT_META_PREFIX,
    X_ACCOUNT_BYTES_USED,
    X_ACCOUNT_CONTAINER_COUNT,
    X_AUTH_TOKEN,
    X_CDN_ENABLED,
    X_CDN_MANAGEMENT_URL,
    X_CDN_SSL_URI,
    X_CDN_STREAMING_URI,
    X_CDN_URI,
    X_CONTAINER_BYTES_USED,
    X_CONTAINER_OBJECT_COUNT,
    X_LOG_RETENTION,
    X_STORAGE_TOKEN,
    X_STORAGE_URL,
    X_TTL,
)
from .descriptors.base import RequestDescriptor, ResponseKind
from .exceptions import (
    AuthenticationFailedError,
    ConflictError,
    NotFoundError,
    PreconditionFailedError,
    ServerFaultError,
    StorageServiceError,
    UnauthorizedError,
)
from .models import (
    AccountInfo,
    CdnContainerInfo,
    ContainerInfo,
    ContainerSummary,
    ObjectSummary,
    Outcome,
    StorageEndpoint,
    StorageItem,
    StorageItemInfo,
)
from .utils import parse_bool, parse_http_date, parse_int

logger = get_logger(__name__)

T = TypeVar("T")


# Fallback error classes when an operation has no override for a status
DEFAULT_ERROR_STATUSES: dict[int, Type[StorageServiceError]] = {
    401: UnauthorizedError,
    403: UnauthorizedError,
    404: NotFoundError,
    409: ConflictError,
    412: PreconditionFailedError,
}

# Outcome for a 2xx the operation's table does not list
DEFAULT_SUCCESS_OUTCOMES: dict[int, Outcome] = {
    200: Outcome.OK,
    201: Outcome.CREATED,
    202: Outcome.ACCEPTED,
    204: Outcome.NO_CONTENT,
    206: Outcome.PARTIAL_CONTENT,
}


@dataclass
class StorageResult(Generic[T]):
    """Translated response: a success value or a typed error, never both."""
    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    outcome: Optional[Outcome] = None
    value: Optional[T] = None
    error: Optional[StorageServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def collect_metadata(headers: httpx.Headers, prefix: str) -> dict[str, str]:
    """Strip ``prefix`` from matching headers, keeping the key's wire case."""
    lowered = prefix.lower()
    metadata: dict[str, str] = {}
    for raw_key, raw_value in headers.raw:
        key = raw_key.decode(headers.encoding)
        if key.lower().startswith(lowered) and len(key) > len(prefix):
            metadata[key[len(prefix):]] = raw_value.decode(headers.encoding)
    return metadata


class ResponseTranslator:
    """Translate raw responses for a given request descriptor."""

    def __init__(self) -> None:
        self._parsers: dict[ResponseKind, Callable[[RequestDescriptor, RawResponse], Any]] = {
            ResponseKind.UNIT: self._unit,
            ResponseKind.ENDPOINT: self._endpoint,
            ResponseKind.NAME_LIST: self._name_list,
            ResponseKind.CONTAINER_LIST: self._container_list,
            ResponseKind.OBJECT_LIST: self._object_list,
            ResponseKind.ACCOUNT_INFO: self._account_info,
            ResponseKind.CONTAINER_INFO: self._container_info,
            ResponseKind.STORAGE_ITEM_INFO: self._storage_item_info,
            ResponseKind.UPLOAD: self._upload,
            ResponseKind.STORAGE_ITEM: self._storage_item,
            ResponseKind.CDN_INFO: self._cdn_info,
            ResponseKind.CDN_URI: self._cdn_uri,
        }

    def translate(self, descriptor: RequestDescriptor, response: RawResponse) -> StorageResult:
        status = response.status_code
        outcome = descriptor.success_statuses.get(status)
        if outcome is None and response.is_success:
            outcome = DEFAULT_SUCCESS_OUTCOMES.get(status, Outcome.OK)
            logger.debug(
                "Unlisted success status",
                operation=descriptor.__class__.__name__,
                status=status,
            )

        if outcome is None:
            body = response.read()
            error = self.error_for(descriptor, response, body)
            logger.debug(
                "Storage request failed",
                operation=descriptor.__class__.__name__,
                status=status,
                error=error.__class__.__name__,
            )
            return StorageResult(status_code=status, headers=response.headers, error=error)

        if not descriptor.streams_response:
            response.read()

        try:
            value = self._parsers[descriptor.response_kind](descriptor, response)
        except StorageServiceError as error:
            response.close()
            return StorageResult(status_code=status, headers=response.headers, error=error)

        return StorageResult(
            status_code=status,
            headers=response.headers,
            outcome=outcome,
            value=value,
        )

    def error_for(
        self,
        descriptor: RequestDescriptor,
        response: RawResponse,
        body: Optional[bytes] = None,
    ) -> StorageServiceError:
        status = response.status_code
        error_class = descriptor.error_statuses.get(status) or DEFAULT_ERROR_STATUSES.get(status)
        if error_class is None:
            error_class = ServerFaultError if status >= 500 else StorageServiceError

        subject = "/".join(
            name for name in (descriptor.container_name, descriptor.object_name) if name
        )
        message = f"{descriptor.__class__.__name__} failed"
        if subject:
            message = f"{message}: {subject}"

        # The body is diagnostic context only
        return error_class(
            message=message,
            status_code=status,
            reason=response.reason or None,
            body=body or None,
            headers=response.headers,
        )

    # Parsers
    def _unit(self, descriptor: RequestDescriptor, response: RawResponse) -> None:
        return None

    def _endpoint(self, descriptor: RequestDescriptor, response: RawResponse) -> StorageEndpoint:
        headers = response.headers
        token = headers.get(X_AUTH_TOKEN) or headers.get(X_STORAGE_TOKEN)
        storage_url = headers.get(X_STORAGE_URL)
        if not (token and storage_url):
            raise AuthenticationFailedError(
                message="Invalid response from the authentication service",
                status_code=response.status_code,
                reason=response.reason or None,
                headers=headers,
            )
        return StorageEndpoint(
            storage_url=storage_url,
            auth_token=token,
            cdn_management_url=headers.get(X_CDN_MANAGEMENT_URL) or None,
        )

    def _name_list(self, descriptor: RequestDescriptor, response: RawResponse) -> list[str]:
        text = response.body.decode("utf-8") if response.body else ""
        return [line for line in text.splitlines() if line.strip()]

    def _json_entries(self, descriptor: RequestDescriptor, response: RawResponse) -> list[dict]:
        if not response.body or not response.body.strip():
            return []
        try:
            entries = json.loads(response.body)
        except json.JSONDecodeError as e:
            raise StorageServiceError(
                message=f"Malformed listing from {descriptor.__class__.__name__}: {e}",
                status_code=response.status_code,
                body=response.body,
            ) from e
        if not isinstance(entries, list):
            raise StorageServiceError(
                message=f"Malformed listing from {descriptor.__class__.__name__}: expected a list",
                status_code=response.status_code,
                body=response.body,
            )
        return entries

    def _container_list(self, descriptor: RequestDescriptor, response: RawResponse) -> list[ContainerSummary]:
        try:
            return [ContainerSummary(**entry) for entry in self._json_entries(descriptor, response)]
        except (TypeError, PydanticValidationError) as e:
            raise StorageServiceError(
                message=f"Malformed container listing: {e}",
                status_code=response.status_code,
                body=response.body,
            ) from e

    def _object_list(self, descriptor: RequestDescriptor, response: RawResponse) -> list[ObjectSummary]:
        summaries = []
        try:
            for entry in self._json_entries(descriptor, response):
                # Pseudo-directory entries only carry "subdir"
                if "subdir" in entry and "name" not in entry:
                    summaries.append(ObjectSummary(name=entry["subdir"]))
                else:
                    summaries.append(ObjectSummary(**entry))
        except (TypeError, PydanticValidationError) as e:
            raise StorageServiceError(
                message=f"Malformed object listing: {e}",
                status_code=response.status_code,
                body=response.body,
            ) from e
        return summaries

    def _account_info(self, descriptor: RequestDescriptor, response: RawResponse) -> AccountInfo:
        headers = response.headers
        return AccountInfo(
            container_count=parse_int(headers.get(X_ACCOUNT_CONTAINER_COUNT)),
            bytes_used=parse_int(headers.get(X_ACCOUNT_BYTES_USED)),
            metadata=collect_metadata(headers, ACCOUNT_META_PREFIX),
        )

    def _container_info(self, descriptor: RequestDescriptor, response: RawResponse) -> ContainerInfo:
        headers = response.headers
        return ContainerInfo(
            name=descriptor.container_name,
            object_count=parse_int(headers.get(X_CONTAINER_OBJECT_COUNT)),
            bytes_used=parse_int(headers.get(X_CONTAINER_BYTES_USED)),
            metadata=collect_metadata(headers, CONTAINER_META_PREFIX),
        )

    def _item_info(self, name: str, headers: httpx.Headers) -> StorageItemInfo:
        length = headers.get(CONTENT_LENGTH)
        etag = headers.get(ETAG)
        return StorageItemInfo(
            name=name,
            content_type=headers.get(CONTENT_TYPE),
            content_length=parse_int(length) if length is not None else None,
            etag=etag.strip('"') if etag else None,
            last_modified=parse_http_date(headers.get(LAST_MODIFIED)),
            metadata=collect_metadata(headers, OBJECT_META_PREFIX),
        )

    def _storage_item_info(self, descriptor: RequestDescriptor, response: RawResponse) -> StorageItemInfo:
        return self._item_info(descriptor.result_name, response.headers)

    def _upload(self, descriptor: RequestDescriptor, response: RawResponse) -> StorageItemInfo:
        etag = response.headers.get(ETAG)
        return StorageItemInfo(
            name=descriptor.object_name,
            content_type=descriptor.content_type,
            etag=etag.strip('"') if etag else None,
            metadata=dict(descriptor.metadata),
        )

    def _storage_item(self, descriptor: RequestDescriptor, response: RawResponse) -> StorageItem:
        return StorageItem(
            info=self._item_info(descriptor.object_name, response.headers),
            status_code=response.status_code,
            _chunks=response.iter_bytes,
            _close=response.close,
        )

    def _cdn_info(self, descriptor: RequestDescriptor, response: RawResponse) -> CdnContainerInfo:
        headers = response.headers
        ttl = headers.get(X_TTL)
        return CdnContainerInfo(
            name=descriptor.container_name,
            cdn_enabled=parse_bool(headers.get(X_CDN_ENABLED)),
            ttl=parse_int(ttl) if ttl is not None else None,
            cdn_uri=headers.get(X_CDN_URI),
            cdn_ssl_uri=headers.get(X_CDN_SSL_URI),
            cdn_streaming_uri=headers.get(X_CDN_STREAMING_URI),
            log_retention=parse_bool(headers.get(X_LOG_RETENTION)),
        )

    def _cdn_uri(self, descriptor: RequestDescriptor, response: RawResponse) -> Optional[str]:
        return response.headers.get(X_CDN_URI)
