"""Cloud Files client exceptions.

Every error carries an ``ErrorKind`` tag so callers can branch on the kind of
failure without matching on concrete classes.
"""
from __future__ import annotations

from enum import Enum
from typing import Mapping, Optional


class ErrorKind(str, Enum):
    """Coarse error categories."""
    ARGUMENT = "argument"
    NAMING = "naming"
    TRANSPORT = "transport"
    SERVICE = "service"
    CONFIGURATION = "configuration"


class CloudFilesError(Exception):
    """Base Cloud Files exception."""

    kind: ErrorKind = ErrorKind.SERVICE

    def __init__(self, message: str = ""):
        self.message = message or self.__class__.__doc__ or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self):
        return self.message


class ArgumentError(CloudFilesError, ValueError):
    """A required argument is missing or empty."""
    kind = ErrorKind.ARGUMENT

    def __init__(self, message: str = "", *, argument: Optional[str] = None):
        self.argument = argument
        if not message and argument:
            message = f"Argument '{argument}' must not be empty"
        super().__init__(message)


class NamingError(CloudFilesError):
    """A name failed validation."""
    kind = ErrorKind.NAMING

    def __init__(self, name: Optional[str] = None, message: str = ""):
        self.name = name
        super().__init__(message or f"{self.__class__.__doc__} {name!r}")


class ContainerNameError(NamingError):
    """Invalid container name:"""


class StorageItemNameError(NamingError):
    """Invalid storage item name:"""


class MetadataKeyError(NamingError):
    """Metadata key too long:"""


class MetadataValueError(NamingError):
    """Metadata value too long:"""


class TransportError(CloudFilesError):
    """Connection-level failure (reset, timeout, closed stream)."""
    kind = ErrorKind.TRANSPORT


class CdnNotEnabledError(CloudFilesError):
    """The account has no CDN management URL."""
    kind = ErrorKind.CONFIGURATION


class StorageServiceError(CloudFilesError):
    """Non-success response from the storage service."""
    kind = ErrorKind.SERVICE

    def __init__(
        self,
        message: str = "",
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        body: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        self.headers = dict(headers or {})
        super().__init__(message)

    def __str__(self):
        parts = [self.message]
        if self.status_code:
            parts.append(f"Status: {self.status_code}")
        if self.reason:
            parts.append(f"Reason: {self.reason}")
        return " | ".join(parts)


class NotFoundError(StorageServiceError):
    """Resource not found"""


class ContainerNotFoundError(NotFoundError):
    """Container not found"""


class StorageItemNotFoundError(NotFoundError):
    """Storage item not found"""


class ConflictError(StorageServiceError):
    """Request conflicts with the resource state"""


class ContainerNotEmptyError(ConflictError):
    """Container is not empty"""


class ContainerAlreadyExistsError(ConflictError):
    """Container already exists"""


class ContainerNotPublicError(StorageServiceError):
    """Container is not CDN enabled"""


class UnauthorizedError(StorageServiceError):
    """Unauthorized"""


class AuthenticationFailedError(UnauthorizedError):
    """Authentication failed"""


class PreconditionFailedError(StorageServiceError):
    """Precondition failed"""


class NotModifiedError(StorageServiceError):
    """Storage item not modified"""


class ServerFaultError(StorageServiceError):
    """Storage service fault"""
