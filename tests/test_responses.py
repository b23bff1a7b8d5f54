import json

import pytest

from infrastructure.external.cloudfiles.base import RawResponse
from infrastructure.external.cloudfiles.descriptors import (
    CreateContainer,
    DeleteContainer,
    DeleteStorageItem,
    GetAccountInformation,
    GetAuthentication,
    GetContainerInformation,
    GetContainerItemList,
    GetContainers,
    GetPublicContainerInformation,
    GetStorageItem,
    GetStorageItemInformation,
    MarkContainerAsPublic,
    SetStorageItemMetaInformation,
)
from infrastructure.external.cloudfiles.exceptions import (
    AuthenticationFailedError,
    ContainerNotEmptyError,
    ContainerNotFoundError,
    ContainerNotPublicError,
    NotFoundError,
    NotModifiedError,
    ServerFaultError,
    StorageItemNotFoundError,
    StorageServiceError,
)
from infrastructure.external.cloudfiles.models import Outcome
from infrastructure.external.cloudfiles.responses import ResponseTranslator

from conftest import CDN_URL, STORAGE_URL


@pytest.fixture
def translator():
    return ResponseTranslator()


def test_delete_no_content_is_unit(translator):
    result = translator.translate(DeleteStorageItem(STORAGE_URL, "c", "o"), RawResponse(204))
    assert result.ok
    assert result.outcome is Outcome.NO_CONTENT
    assert result.unwrap() is None


def test_not_found_maps_to_operation_error(translator):
    result = translator.translate(DeleteStorageItem(STORAGE_URL, "c", "o"), RawResponse(404, body=b"gone"))
    assert not result.ok
    assert isinstance(result.error, StorageItemNotFoundError)
    assert isinstance(result.error, NotFoundError)
    assert result.error.body == b"gone"
    with pytest.raises(StorageItemNotFoundError) as exc:
        result.unwrap()
    assert "c/o" in str(exc.value)
    assert "404" in str(exc.value)


def test_delete_container_statuses(translator):
    missing = translator.translate(DeleteContainer(STORAGE_URL, "c"), RawResponse(404))
    assert isinstance(missing.error, ContainerNotFoundError)
    busy = translator.translate(DeleteContainer(STORAGE_URL, "c"), RawResponse(409))
    assert isinstance(busy.error, ContainerNotEmptyError)


def test_202_depends_on_operation(translator):
    created = translator.translate(CreateContainer(STORAGE_URL, "c"), RawResponse(201))
    existing = translator.translate(CreateContainer(STORAGE_URL, "c"), RawResponse(202))
    accepted = translator.translate(
        SetStorageItemMetaInformation(STORAGE_URL, "c", "o", {"k": "v"}), RawResponse(202)
    )
    assert created.outcome is Outcome.CREATED
    assert existing.outcome is Outcome.ALREADY_EXISTS
    assert accepted.outcome is Outcome.ACCEPTED


def test_unlisted_success_status_is_still_success(translator):
    result = translator.translate(DeleteStorageItem(STORAGE_URL, "c", "o"), RawResponse(200))
    assert result.ok
    assert result.outcome is Outcome.OK


def test_server_fault_and_unknown_status(translator):
    fault = translator.translate(GetContainers(STORAGE_URL), RawResponse(503, reason="Service Unavailable"))
    assert isinstance(fault.error, ServerFaultError)
    assert fault.error.status_code == 503
    teapot = translator.translate(GetContainers(STORAGE_URL), RawResponse(418))
    assert type(teapot.error) is StorageServiceError


def test_name_listing(translator):
    empty = translator.translate(GetContainers(STORAGE_URL), RawResponse(204))
    assert empty.unwrap() == []
    names = translator.translate(GetContainers(STORAGE_URL), RawResponse(200, body=b"alpha\nbeta\n\n"))
    assert names.unwrap() == ["alpha", "beta"]


def test_detailed_container_listing(translator):
    body = json.dumps([{"name": "alpha", "count": 2, "bytes": 10}]).encode()
    result = translator.translate(GetContainers(STORAGE_URL, detailed=True), RawResponse(200, body=body))
    [summary] = result.unwrap()
    assert (summary.name, summary.count, summary.bytes) == ("alpha", 2, 10)


def test_detailed_object_listing_with_pseudo_directories(translator):
    body = json.dumps([
        {"subdir": "photos/"},
        {
            "name": "photos/cat.jpg",
            "hash": "abc",
            "bytes": 4,
            "content_type": "image/jpeg",
            "last_modified": "2024-01-02T03:04:05.000000",
        },
    ]).encode()
    descriptor = GetContainerItemList(STORAGE_URL, "c", detailed=True)
    objects = translator.translate(descriptor, RawResponse(200, body=body)).unwrap()
    assert [o.name for o in objects] == ["photos/", "photos/cat.jpg"]
    assert objects[1].last_modified.year == 2024


def test_malformed_listing_is_an_error_result(translator):
    descriptor = GetContainerItemList(STORAGE_URL, "c", detailed=True)
    result = translator.translate(descriptor, RawResponse(200, body=b"{not json"))
    assert isinstance(result.error, StorageServiceError)


def test_account_and_container_information(translator):
    account = translator.translate(GetAccountInformation(STORAGE_URL), RawResponse(204, headers={
        "X-Account-Container-Count": "3",
        "X-Account-Bytes-Used": "1024",
        "X-Account-Meta-Temp-Url-Key": "secret",
    })).unwrap()
    assert (account.container_count, account.bytes_used) == (3, 1024)
    assert account.metadata == {"Temp-Url-Key": "secret"}

    container = translator.translate(GetContainerInformation(STORAGE_URL, "c"), RawResponse(204, headers={
        "X-Container-Object-Count": "7",
        "X-Container-Bytes-Used": "70",
    })).unwrap()
    assert (container.name, container.object_count, container.bytes_used) == ("c", 7, 70)


def test_storage_item_information_strips_metadata_prefix(translator):
    info = translator.translate(GetStorageItemInformation(STORAGE_URL, "c", "o"), RawResponse(200, headers={
        "Content-Type": "text/plain",
        "Content-Length": "12",
        "ETag": '"d41d8cd98f00b204e9800998ecf8427e"',
        "Last-Modified": "Tue, 02 Jan 2024 03:04:05 GMT",
        "X-Object-Meta-Testkey": "testvalue",
    })).unwrap()
    assert info.metadata == {"Testkey": "testvalue"}
    assert info.content_length == 12
    assert info.etag == "d41d8cd98f00b204e9800998ecf8427e"
    assert info.last_modified.day == 2


def test_authentication_endpoint(translator):
    descriptor = GetAuthentication("https://auth/v1.0", "u", "k")
    endpoint = translator.translate(descriptor, RawResponse(204, headers={
        "X-Auth-Token": "tok",
        "X-Storage-Url": STORAGE_URL,
        "X-CDN-Management-Url": CDN_URL,
    })).unwrap()
    assert endpoint.auth_token == "tok"
    assert endpoint.cdn_enabled


def test_authentication_failures(translator):
    rejected = translator.translate(GetAuthentication("https://auth/v1.0", "u", "k"), RawResponse(401))
    assert isinstance(rejected.error, AuthenticationFailedError)
    incomplete = translator.translate(
        GetAuthentication("https://auth/v1.0", "u", "k"), RawResponse(204, headers={"X-Auth-Token": "tok"})
    )
    assert isinstance(incomplete.error, AuthenticationFailedError)


def test_streaming_storage_item(translator):
    closed = []

    def chunks(size):
        yield b"hello "
        yield b"world"

    response = RawResponse(200, headers={"Content-Length": "11"}, _stream=chunks, _close=lambda: closed.append(True))
    item = translator.translate(GetStorageItem(STORAGE_URL, "c", "o"), response).unwrap()
    assert item.info.content_length == 11
    assert closed == []
    assert item.read() == b"hello world"
    assert item.closed
    assert closed == [True]


def test_streaming_error_body_is_drained_and_closed(translator):
    closed = []
    response = RawResponse(304, _stream=lambda size: iter([b"x"]), _close=lambda: closed.append(True))
    result = translator.translate(GetStorageItem(STORAGE_URL, "c", "o"), response)
    assert isinstance(result.error, NotModifiedError)
    assert closed == [True]


def test_cdn_results(translator):
    uri = translator.translate(
        MarkContainerAsPublic(CDN_URL, "c"), RawResponse(201, headers={"X-CDN-URI": "http://cdn/c"})
    ).unwrap()
    assert uri == "http://cdn/c"

    info = translator.translate(GetPublicContainerInformation(CDN_URL, "c"), RawResponse(204, headers={
        "X-CDN-Enabled": "True",
        "X-TTL": "3600",
        "X-Log-Retention": "False",
    })).unwrap()
    assert info.cdn_enabled and info.ttl == 3600 and not info.log_retention

    private = translator.translate(GetPublicContainerInformation(CDN_URL, "c"), RawResponse(404))
    assert isinstance(private.error, ContainerNotPublicError)
