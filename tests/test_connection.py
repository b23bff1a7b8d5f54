import io

import pytest

from infrastructure.external.cloudfiles.base import RawResponse
from infrastructure.external.cloudfiles.config import CloudFilesConfig
from infrastructure.external.cloudfiles.connection import Connection
from infrastructure.external.cloudfiles.exceptions import (
    ArgumentError,
    CdnNotEnabledError,
    ContainerAlreadyExistsError,
    MetadataValueError,
    StorageItemNameError,
    UnauthorizedError,
)
from infrastructure.external.cloudfiles.models import Outcome, StorageEndpoint

from conftest import AUTH_URL, CDN_URL, STORAGE_URL, auth_response


def _connect(transport, filesystem=None, **config):
    return Connection(
        "user",
        "key",
        AUTH_URL,
        config=CloudFilesConfig(**config),
        transport=transport,
        filesystem=filesystem,
    )


def test_authenticates_lazily_on_first_call(transport):
    conn = _connect(transport)
    assert transport.requests == []

    transport.queue(auth_response("tok1"), RawResponse(200, body=b"alpha\n"))
    assert conn.list_containers() == ["alpha"]

    auth, listing = transport.requests
    assert auth.uri == AUTH_URL
    assert auth.headers["X-Auth-User"] == "user"
    assert listing.uri == STORAGE_URL
    assert listing.headers["X-Auth-Token"] == "tok1"


def test_reauthenticates_once_on_401(transport):
    transport.queue(
        auth_response("tok1"),
        RawResponse(401),
        auth_response("tok2"),
        RawResponse(204),
    )
    conn = _connect(transport)
    assert conn.list_objects("c", prefix="a") == []
    assert conn.endpoint.auth_token == "tok2"
    assert transport.requests[-1].headers["X-Auth-Token"] == "tok2"
    assert transport.requests[-1].uri == f"{STORAGE_URL}/c?prefix=a"


def test_second_401_is_raised(transport):
    transport.queue(auth_response("tok1"), RawResponse(401), auth_response("tok2"), RawResponse(401))
    with pytest.raises(UnauthorizedError):
        _connect(transport).get_container_information("c")
    assert len(transport.requests) == 4


def test_reauthentication_can_be_disabled(transport):
    transport.queue(auth_response(), RawResponse(401))
    with pytest.raises(UnauthorizedError):
        _connect(transport, reauthenticate=False).get_account_information()
    assert len(transport.requests) == 2


def test_upload_is_not_replayed_after_401(transport, filesystem):
    filesystem.files["/tmp/cat.jpg"] = b"meow"
    transport.queue(auth_response(), RawResponse(401))
    with pytest.raises(UnauthorizedError):
        _connect(transport, filesystem).put_storage_item("c", "/tmp/cat.jpg")
    assert len(transport.requests) == 2
    assert filesystem.opened[0].closed


def test_put_storage_item_from_local_file(endpoint, transport, filesystem):
    filesystem.files["/tmp/cat.jpg"] = b"meow"
    transport.queue(RawResponse(201, headers={"ETag": '"etag"'}))
    conn = Connection(endpoint=endpoint, transport=transport, filesystem=filesystem)

    info = conn.put_storage_item("c", "/tmp/cat.jpg", metadata={"Color": "grey"})

    request = transport.requests[0]
    assert request.uri == f"{STORAGE_URL}/c/cat.jpg"
    assert request.content_type == "image/jpeg"
    assert request.headers["X-Object-Meta-Color"] == "grey"
    assert transport.payloads == [b"meow"]
    assert (info.name, info.etag, info.metadata) == ("cat.jpg", "etag", {"Color": "grey"})
    assert filesystem.opened[0].closed


def test_put_storage_item_stream_leaves_stream_open(endpoint, transport):
    stream = io.BytesIO(b"hello")
    progress = []
    transport.queue(RawResponse(201))
    conn = Connection(endpoint=endpoint, transport=transport)

    conn.put_storage_item_stream("c", stream, "greeting.txt", progress=lambda s, t: progress.append((s, t)))

    assert transport.payloads == [b"hello"]
    assert progress == [(4, 5), (5, 5)]
    assert not stream.closed


def test_get_storage_item_to_file(endpoint, transport, filesystem):
    transport.queue(RawResponse(200, headers={"Content-Length": "6"}, body=b"abcdef"))
    progress = []
    conn = Connection(endpoint=endpoint, transport=transport, filesystem=filesystem)

    info = conn.get_storage_item_to_file(
        "c", "o.bin", "/tmp/out.bin", progress=lambda s, t: progress.append((s, t))
    )

    assert filesystem.written["/tmp/out.bin"] == b"abcdef"
    assert info.content_length == 6
    assert progress == [(6, 6)]


def test_create_container_existing(endpoint, transport):
    conn = Connection(endpoint=endpoint, transport=transport)
    transport.queue(RawResponse(201), RawResponse(202), RawResponse(202))

    assert conn.create_container("c") is Outcome.CREATED
    assert conn.create_container("c") is Outcome.ALREADY_EXISTS
    with pytest.raises(ContainerAlreadyExistsError):
        conn.create_container("c", error_on_existing=True)


def test_cdn_operations_need_cdn_endpoint(transport):
    endpoint = StorageEndpoint(storage_url=STORAGE_URL, auth_token="tok")
    conn = Connection(endpoint=endpoint, transport=transport)
    assert not conn.cdn_enabled
    with pytest.raises(CdnNotEnabledError):
        conn.mark_container_as_public("c")
    assert transport.requests == []


def test_mark_container_public_and_private(endpoint, transport):
    transport.queue(RawResponse(201, headers={"X-CDN-URI": "http://cdn/c"}), RawResponse(202))
    conn = Connection(endpoint=endpoint, transport=transport)

    assert conn.mark_container_as_public("c") == "http://cdn/c"
    conn.mark_container_as_private("c")

    publish, withdraw = transport.requests
    assert publish.uri == f"{CDN_URL}/c"
    assert publish.headers["X-TTL"] == "86400"
    assert withdraw.method == "POST"
    assert withdraw.headers["X-CDN-Enabled"] == "False"


def test_copy_and_delete(endpoint, transport):
    transport.queue(RawResponse(201, headers={"Content-Type": "text/plain"}), RawResponse(204))
    conn = Connection(endpoint=endpoint, transport=transport)

    info = conn.copy_storage_item("a", "x.txt", "b", "y.txt")
    conn.delete_storage_item("a", "x.txt")

    assert info.name == "y.txt"
    assert [r.method for r in transport.requests] == ["COPY", "DELETE"]


def test_invalid_names_send_nothing(endpoint, transport):
    conn = Connection(endpoint=endpoint, transport=transport)
    with pytest.raises(ArgumentError):
        conn.delete_container("")
    assert transport.requests == []


def test_requires_credentials_or_endpoint(transport):
    with pytest.raises(ArgumentError):
        Connection(transport=transport)


def test_close_closes_transport(endpoint, transport):
    with Connection(endpoint=endpoint, transport=transport):
        pass
    assert transport.closed


def test_slash_only_object_name_sends_nothing(endpoint, transport):
    conn = Connection(endpoint=endpoint, transport=transport)
    with pytest.raises(StorageItemNameError):
        conn.delete_storage_item("c", "///")
    assert transport.requests == []


def test_header_injection_in_metadata_sends_nothing(endpoint, transport):
    conn = Connection(endpoint=endpoint, transport=transport)
    with pytest.raises(MetadataValueError):
        conn.set_storage_item_metadata("c", "o", {"k": "v\r\nX-Injected: 1"})
    assert transport.requests == []
