"""Connection façade: owns the session endpoint and runs one descriptor per call."""
from __future__ import annotations

import threading
from typing import BinaryIO, Callable, Mapping, Optional

from core.logging_config import get_logger
from .authentication import Authentication, StaticAuthentication
from .base import Authenticator, CloudFilesRequest, FileSystem, Transport
from .config import CloudFilesConfig
from .constants import X_AUTH_TOKEN
from .descriptors import (
    CopyStorageItem,
    CreateContainer,
    DeleteContainer,
    DeleteStorageItem,
    GetAccountInformation,
    GetContainerInformation,
    GetContainerItemList,
    GetContainers,
    GetPublicContainerInformation,
    GetPublicContainers,
    GetStorageItem,
    GetStorageItemInformation,
    ListingOptions,
    MarkContainerAsPublic,
    PutStorageItem,
    RequestDescriptor,
    SetContainerMetaInformation,
    SetPublicContainerDetails,
    SetStorageItemMetaInformation,
)
from .exceptions import (
    ArgumentError,
    AuthenticationFailedError,
    CdnNotEnabledError,
    ContainerAlreadyExistsError,
    UnauthorizedError,
)
from .filesystem import LocalFileSystem
from .models import (
    AccountInfo,
    CdnContainerInfo,
    ContainerInfo,
    ContainerSummary,
    ObjectSummary,
    Outcome,
    ProgressCallback,
    StorageEndpoint,
    StorageItem,
    StorageItemInfo,
)
from .responses import ResponseTranslator, StorageResult
from .transport import HttpxTransport

logger = get_logger(__name__)

DescriptorBuilder = Callable[[StorageEndpoint], RequestDescriptor]


class Connection:
    """
    Cloud Files connection.

    Authenticates lazily on first use. The endpoint (token, storage URL, CDN URL)
    is read-only while a call is in flight and replaced as a whole when the
    connection re-authenticates. Each call builds its own request descriptor, so
    a connection may be shared between threads.

    Example:
        with Connection("user", "api-key") as conn:
            conn.create_container("photos")
            conn.put_storage_item("photos", "/tmp/cat.jpg")
    """

    def __init__(
        self,
        username: Optional[str] = None,
        api_key: Optional[str] = None,
        auth_url: Optional[str] = None,
        *,
        config: Optional[CloudFilesConfig] = None,
        endpoint: Optional[StorageEndpoint] = None,
        authenticator: Optional[Authenticator] = None,
        transport: Optional[Transport] = None,
        filesystem: Optional[FileSystem] = None,
        translator: Optional[ResponseTranslator] = None,
    ):
        """
        Args:
            username: Account user name (overrides ``config.username``)
            api_key: Account API key (overrides ``config.api_key``)
            auth_url: Authentication service URL (overrides ``config.auth_url``)
            config: Client configuration
            endpoint: Pre-issued endpoint; skips the first authentication
            authenticator: Custom authentication provider
            transport: HTTP transport (defaults to ``HttpxTransport``)
            filesystem: Local file access for uploads and downloads
            translator: Response translator

        Raises:
            ArgumentError: If no credentials, endpoint or authenticator is given
        """
        config = config or CloudFilesConfig()
        overrides = {
            k: v for k, v in
            {"username": username, "api_key": api_key, "auth_url": auth_url}.items()
            if v is not None
        }
        if overrides:
            config = config.model_copy(update=overrides)
        self.config = config

        self.transport = transport or HttpxTransport(
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
            user_agent=config.user_agent,
            chunk_size=config.chunk_size,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            debug=config.debug,
        )
        self.filesystem = filesystem or LocalFileSystem()
        self.translator = translator or ResponseTranslator()

        if authenticator is None:
            if config.username or config.api_key:
                authenticator = Authentication(
                    username=config.username,
                    api_key=config.api_key,
                    auth_url=config.auth_url,
                    transport=self.transport,
                    user_agent=config.user_agent,
                    servicenet=config.servicenet,
                    translator=self.translator,
                )
            elif endpoint is not None:
                authenticator = StaticAuthentication(endpoint)
            else:
                raise ArgumentError(
                    "username and api_key, an endpoint or an authenticator is required",
                    argument="username",
                )
        self.authenticator = authenticator

        self._endpoint: Optional[StorageEndpoint] = endpoint
        self._auth_lock = threading.Lock()

    # Session
    def authenticate(self) -> StorageEndpoint:
        """Authenticate and replace the current endpoint."""
        with self._auth_lock:
            self._endpoint = self.authenticator.authenticate()
            return self._endpoint

    @property
    def endpoint(self) -> StorageEndpoint:
        endpoint = self._endpoint
        if endpoint is None:
            with self._auth_lock:
                if self._endpoint is None:
                    self._endpoint = self.authenticator.authenticate()
                endpoint = self._endpoint
        return endpoint

    @property
    def cdn_enabled(self) -> bool:
        return self.endpoint.cdn_enabled

    def _reauthenticate(self, stale: StorageEndpoint) -> StorageEndpoint:
        with self._auth_lock:
            # Another thread may have refreshed it already
            if self._endpoint is stale:
                logger.warning("Auth token rejected, re-authenticating")
                self._endpoint = self.authenticator.authenticate()
            return self._endpoint

    def close(self) -> None:
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # Request pipeline
    def _send(self, descriptor: RequestDescriptor, endpoint: StorageEndpoint) -> StorageResult:
        request = CloudFilesRequest()
        try:
            descriptor.apply(request)
            if descriptor.requires_auth:
                request.headers[X_AUTH_TOKEN] = endpoint.auth_token
            response = self.transport.send(request, stream=descriptor.streams_response)
            return self.translator.translate(descriptor, response)
        finally:
            descriptor.release()

    def _execute(self, build: DescriptorBuilder) -> StorageResult:
        endpoint = self.endpoint
        descriptor = build(endpoint)
        result = self._send(descriptor, endpoint)

        if (
            isinstance(result.error, UnauthorizedError)
            and not isinstance(result.error, AuthenticationFailedError)
            and result.status_code == 401
            and self.config.reauthenticate
            and descriptor.replayable
        ):
            endpoint = self._reauthenticate(endpoint)
            result = self._send(build(endpoint), endpoint)
        return result

    def _cdn_url(self, endpoint: StorageEndpoint) -> str:
        if not endpoint.cdn_management_url:
            raise CdnNotEnabledError()
        return endpoint.cdn_management_url

    # Account
    def get_account_information(self) -> AccountInfo:
        return self._execute(lambda ep: GetAccountInformation(ep.storage_url)).unwrap()

    def list_containers(
        self,
        prefix: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        marker: Optional[str] = None,
    ) -> list[str]:
        options = ListingOptions(prefix, limit, offset, marker)
        return self._execute(lambda ep: GetContainers(ep.storage_url, options)).unwrap()

    def list_containers_info(
        self,
        prefix: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        marker: Optional[str] = None,
    ) -> list[ContainerSummary]:
        options = ListingOptions(prefix, limit, offset, marker)
        return self._execute(lambda ep: GetContainers(ep.storage_url, options, detailed=True)).unwrap()

    # Containers
    def create_container(self, container_name: str, error_on_existing: bool = False) -> Outcome:
        """
        Create a container.

        Returns:
            ``Outcome.CREATED``, or ``Outcome.ALREADY_EXISTS`` when it was present

        Raises:
            ContainerAlreadyExistsError: If present and ``error_on_existing``
        """
        result = self._execute(lambda ep: CreateContainer(ep.storage_url, container_name))
        result.unwrap()
        if result.outcome is Outcome.ALREADY_EXISTS:
            if error_on_existing:
                raise ContainerAlreadyExistsError(
                    message=f"Container already exists: {container_name}",
                    status_code=result.status_code,
                    headers=result.headers,
                )
            logger.info("Container already exists", container=container_name)
        else:
            logger.info("Created container", container=container_name)
        return result.outcome

    def delete_container(self, container_name: str) -> None:
        """
        Raises:
            ContainerNotFoundError: If the container does not exist
            ContainerNotEmptyError: If the container still holds objects
        """
        self._execute(lambda ep: DeleteContainer(ep.storage_url, container_name)).unwrap()
        logger.info("Deleted container", container=container_name)

    def get_container_information(self, container_name: str) -> ContainerInfo:
        return self._execute(
            lambda ep: GetContainerInformation(ep.storage_url, container_name)
        ).unwrap()

    def set_container_metadata(self, container_name: str, metadata: Mapping[str, str]) -> None:
        self._execute(
            lambda ep: SetContainerMetaInformation(ep.storage_url, container_name, metadata)
        ).unwrap()
        logger.info("Updated container metadata", container=container_name, keys=len(metadata))

    def list_objects(
        self,
        container_name: str,
        prefix: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        marker: Optional[str] = None,
    ) -> list[str]:
        options = ListingOptions(prefix, limit, offset, marker)
        return self._execute(
            lambda ep: GetContainerItemList(ep.storage_url, container_name, options)
        ).unwrap()

    def list_objects_info(
        self,
        container_name: str,
        prefix: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        marker: Optional[str] = None,
    ) -> list[ObjectSummary]:
        options = ListingOptions(prefix, limit, offset, marker)
        return self._execute(
            lambda ep: GetContainerItemList(ep.storage_url, container_name, options, detailed=True)
        ).unwrap()

    # Storage items
    def put_storage_item(
        self,
        container_name: str,
        local_file_path: str,
        object_name: Optional[str] = None,
        metadata: Optional[Mapping[str, str]] = None,
        content_type: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> StorageItemInfo:
        """
        Upload a local file. The object name defaults to the file's base name.

        Args:
            container_name: Target container
            local_file_path: Path (or ``file://`` URL) of the file to upload
            object_name: Remote name
            metadata: Object metadata, sent as ``X-Object-Meta-*`` headers
            content_type: Overrides the type resolved from the file extension
            progress: Called with ``(bytes_sent, total_bytes)`` while sending
        """
        if not local_file_path:
            raise ArgumentError(argument="local_file_path")
        if object_name is None:
            object_name = local_file_path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]

        result = self._execute(lambda ep: PutStorageItem(
            ep.storage_url,
            container_name,
            object_name,
            local_file_path=local_file_path,
            metadata=metadata,
            content_type=content_type,
            progress=progress,
            filesystem=self.filesystem,
        ))
        info = result.unwrap()
        logger.info("Uploaded storage item", container=container_name, object_name=object_name)
        return info

    def put_storage_item_stream(
        self,
        container_name: str,
        stream: BinaryIO,
        object_name: str,
        metadata: Optional[Mapping[str, str]] = None,
        content_type: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> StorageItemInfo:
        """Upload from an open binary stream; the caller keeps ownership of it."""
        result = self._execute(lambda ep: PutStorageItem(
            ep.storage_url,
            container_name,
            object_name,
            stream=stream,
            metadata=metadata,
            content_type=content_type,
            progress=progress,
        ))
        info = result.unwrap()
        logger.info("Uploaded storage item", container=container_name, object_name=object_name)
        return info

    def get_storage_item(
        self,
        container_name: str,
        object_name: str,
        request_headers: Optional[Mapping[str, str]] = None,
    ) -> StorageItem:
        """
        Download a storage item. The returned item holds an open body stream;
        iterate it or use it as a context manager.

        Raises:
            StorageItemNotFoundError: If the object does not exist
            NotModifiedError: On 304 for conditional requests
            PreconditionFailedError: On 412 for conditional requests
        """
        return self._execute(
            lambda ep: GetStorageItem(ep.storage_url, container_name, object_name, request_headers)
        ).unwrap()

    def get_storage_item_to_file(
        self,
        container_name: str,
        object_name: str,
        local_file_path: str,
        request_headers: Optional[Mapping[str, str]] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> StorageItemInfo:
        """Download a storage item into a local file, reporting progress."""
        if not local_file_path:
            raise ArgumentError(argument="local_file_path")
        with self.get_storage_item(container_name, object_name, request_headers) as item:
            total = item.info.content_length
            received = 0
            with self.filesystem.open_write(local_file_path) as target:
                for chunk in item.iter_content(self.config.chunk_size):
                    target.write(chunk)
                    received += len(chunk)
                    if progress is not None:
                        progress(received, total)
            if progress is not None and received != total:
                progress(received, received if total is None else total)
        logger.info(
            "Downloaded storage item",
            container=container_name,
            object_name=object_name,
            size=received,
        )
        return item.info

    def get_storage_item_information(self, container_name: str, object_name: str) -> StorageItemInfo:
        return self._execute(
            lambda ep: GetStorageItemInformation(ep.storage_url, container_name, object_name)
        ).unwrap()

    def set_storage_item_metadata(
        self,
        container_name: str,
        object_name: str,
        metadata: Mapping[str, str],
    ) -> None:
        """Replace the object's metadata (the service answers 202 Accepted)."""
        self._execute(lambda ep: SetStorageItemMetaInformation(
            ep.storage_url, container_name, object_name, metadata
        )).unwrap()
        logger.info(
            "Updated storage item metadata",
            container=container_name,
            object_name=object_name,
            keys=len(metadata),
        )

    def delete_storage_item(self, container_name: str, object_name: str) -> None:
        self._execute(
            lambda ep: DeleteStorageItem(ep.storage_url, container_name, object_name)
        ).unwrap()
        logger.info("Deleted storage item", container=container_name, object_name=object_name)

    def copy_storage_item(
        self,
        source_container: str,
        source_object: str,
        destination_container: str,
        destination_object: str,
        metadata: Optional[Mapping[str, str]] = None,
    ) -> StorageItemInfo:
        info = self._execute(lambda ep: CopyStorageItem(
            ep.storage_url,
            source_container,
            source_object,
            destination_container,
            destination_object,
            metadata,
        )).unwrap()
        logger.info(
            "Copied storage item",
            source=f"{source_container}/{source_object}",
            destination=f"{destination_container}/{destination_object}",
        )
        return info

    # CDN
    def list_public_containers(self, enabled_only: bool = True) -> list[str]:
        return self._execute(
            lambda ep: GetPublicContainers(self._cdn_url(ep), enabled_only)
        ).unwrap()

    def mark_container_as_public(
        self,
        container_name: str,
        ttl: Optional[int] = None,
        log_retention: bool = False,
    ) -> Optional[str]:
        """
        Publish a container to the CDN.

        Returns:
            The container's public CDN URI

        Raises:
            CdnNotEnabledError: If the account has no CDN management URL
        """
        ttl = self.config.default_cdn_ttl if ttl is None else ttl
        cdn_uri = self._execute(lambda ep: MarkContainerAsPublic(
            self._cdn_url(ep), container_name, ttl, log_retention
        )).unwrap()
        logger.info("Published container to CDN", container=container_name, ttl=ttl)
        return cdn_uri

    def mark_container_as_private(self, container_name: str) -> None:
        """Disable CDN access; cached copies live until their TTL expires."""
        self._execute(lambda ep: SetPublicContainerDetails(
            self._cdn_url(ep), container_name, cdn_enabled=False
        )).unwrap()
        logger.info("Withdrew container from CDN", container=container_name)

    def set_public_container_details(
        self,
        container_name: str,
        cdn_enabled: bool,
        ttl: Optional[int] = None,
        log_retention: Optional[bool] = None,
    ) -> None:
        self._execute(lambda ep: SetPublicContainerDetails(
            self._cdn_url(ep), container_name, cdn_enabled, ttl, log_retention
        )).unwrap()
        logger.info(
            "Updated container CDN details",
            container=container_name,
            cdn_enabled=cdn_enabled,
            ttl=ttl,
            log_retention=log_retention,
        )

    def get_public_container_information(self, container_name: str) -> CdnContainerInfo:
        return self._execute(
            lambda ep: GetPublicContainerInformation(self._cdn_url(ep), container_name)
        ).unwrap()
