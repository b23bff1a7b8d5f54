"""Cloud Files client entry point and lifecycle management."""
from typing import Optional
from functools import lru_cache

from core.config import settings
from core.logging_config import configure_logging, get_logger
from .config import CloudFilesConfig
from .connection import Connection

logger = get_logger(__name__)

# Global connection instance
_connection: Optional[Connection] = None


@lru_cache
def get_cloudfiles_config() -> CloudFilesConfig:
    """Get client configuration from settings.

    Assembles CloudFilesConfig from core.config.settings to maintain
    single source of truth for configuration.
    """
    s = settings.cloudfiles
    return CloudFilesConfig(
        username=s.username,
        api_key=s.api_key,
        auth_url=s.auth_url,
        servicenet=s.servicenet,
        timeout=s.timeout,
        verify_ssl=s.verify_ssl,
        user_agent=s.user_agent,
        chunk_size=s.chunk_size,
        max_retries=s.max_retries,
        retry_delay=s.retry_delay,
        reauthenticate=s.reauthenticate,
        default_cdn_ttl=s.default_cdn_ttl,
        debug=settings.DEBUG,
    )


def init_connection() -> Connection:
    """Create the shared connection and configure client logging.

    Authentication happens on first use.
    """
    global _connection

    if _connection is not None:
        logger.warning("Cloud Files connection already initialized")
        return _connection

    configure_logging()
    config = get_cloudfiles_config()
    _connection = Connection(config=config)
    logger.info(
        "Cloud Files connection initialized",
        auth_url=config.auth_url,
        servicenet=config.servicenet,
    )
    return _connection


def get_connection() -> Connection:
    """
    Returns:
        The shared connection

    Raises:
        RuntimeError: If init_connection() has not been called
    """
    if _connection is None:
        raise RuntimeError(
            "Cloud Files connection not initialized. "
            "Call init_connection() first."
        )
    return _connection


def shutdown_connection() -> None:
    global _connection

    if _connection is None:
        return
    try:
        _connection.close()
        logger.info("Cloud Files connection shutdown")
    finally:
        _connection = None


# Export public interface
__all__ = [
    # Lifecycle
    "init_connection",
    "get_connection",
    "shutdown_connection",

    # Configuration
    "get_cloudfiles_config",
    "CloudFilesConfig",

    # Client
    "Connection",
    "Authentication",
    "StaticAuthentication",
    "HttpxTransport",
    "LocalFileSystem",
    "ResponseTranslator",
    "StorageResult",
    "CloudFilesRequest",
    "RawResponse",

    # Models
    "Outcome",
    "StorageEndpoint",
    "AccountInfo",
    "ContainerSummary",
    "ContainerInfo",
    "ObjectSummary",
    "StorageItemInfo",
    "StorageItem",
    "CdnContainerInfo",

    # Exceptions
    "ErrorKind",
    "CloudFilesError",
    "ArgumentError",
    "NamingError",
    "ContainerNameError",
    "StorageItemNameError",
    "MetadataKeyError",
    "MetadataValueError",
    "TransportError",
    "CdnNotEnabledError",
    "StorageServiceError",
    "NotFoundError",
    "ContainerNotFoundError",
    "StorageItemNotFoundError",
    "ConflictError",
    "ContainerNotEmptyError",
    "ContainerAlreadyExistsError",
    "ContainerNotPublicError",
    "UnauthorizedError",
    "AuthenticationFailedError",
    "PreconditionFailedError",
    "NotModifiedError",
    "ServerFaultError",

    # Utils
    "with_retry",
]

# Import client types, models and exceptions for easier access
from .authentication import Authentication, StaticAuthentication
from .base import CloudFilesRequest, RawResponse
from .filesystem import LocalFileSystem
from .responses import ResponseTranslator, StorageResult
from .transport import HttpxTransport
from .models import (
    Outcome,
    StorageEndpoint,
    AccountInfo,
    ContainerSummary,
    ContainerInfo,
    ObjectSummary,
    StorageItemInfo,
    StorageItem,
    CdnContainerInfo,
)
from .exceptions import (
    ErrorKind,
    CloudFilesError,
    ArgumentError,
    NamingError,
    ContainerNameError,
    StorageItemNameError,
    MetadataKeyError,
    MetadataValueError,
    TransportError,
    CdnNotEnabledError,
    StorageServiceError,
    NotFoundError,
    ContainerNotFoundError,
    StorageItemNotFoundError,
    ConflictError,
    ContainerNotEmptyError,
    ContainerAlreadyExistsError,
    ContainerNotPublicError,
    UnauthorizedError,
    AuthenticationFailedError,
    PreconditionFailedError,
    NotModifiedError,
    ServerFaultError,
)
from .utils import with_retry
