"""
Request descriptors, one per storage operation.
"""
from .base import ListingOptions, RequestDescriptor, ResponseKind
from .account import GetAccountInformation, GetAuthentication, GetContainers
from .container import (
    CreateContainer,
    DeleteContainer,
    GetContainerInformation,
    GetContainerItemList,
    SetContainerMetaInformation,
)
from .storage_item import (
    CopyStorageItem,
    DeleteStorageItem,
    GetStorageItem,
    GetStorageItemInformation,
    PutStorageItem,
    SetStorageItemMetaInformation,
)
from .cdn import (
    GetPublicContainerInformation,
    GetPublicContainers,
    MarkContainerAsPublic,
    SetPublicContainerDetails,
)

__all__ = [
    "ListingOptions",
    "RequestDescriptor",
    "ResponseKind",
    "GetAuthentication",
    "GetAccountInformation",
    "GetContainers",
    "CreateContainer",
    "DeleteContainer",
    "GetContainerInformation",
    "GetContainerItemList",
    "SetContainerMetaInformation",
    "PutStorageItem",
    "GetStorageItem",
    "GetStorageItemInformation",
    "SetStorageItemMetaInformation",
    "DeleteStorageItem",
    "CopyStorageItem",
    "GetPublicContainers",
    "MarkContainerAsPublic",
    "SetPublicContainerDetails",
    "GetPublicContainerInformation",
]
