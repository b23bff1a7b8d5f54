import pytest

from infrastructure.external.cloudfiles.authentication import (
    Authentication,
    StaticAuthentication,
    servicenet_url,
)
from infrastructure.external.cloudfiles.base import RawResponse
from infrastructure.external.cloudfiles.exceptions import (
    ArgumentError,
    AuthenticationFailedError,
    ServerFaultError,
)

from conftest import AUTH_URL, auth_response


def test_servicenet_url():
    assert servicenet_url("https://storage.example.com/v1/acc") == "https://snet-storage.example.com/v1/acc"
    assert servicenet_url("https://snet-storage.example.com/v1") == "https://snet-storage.example.com/v1"


def test_authenticate_returns_endpoint(transport):
    transport.queue(auth_response("tok"))
    endpoint = Authentication("user", "key", AUTH_URL, transport, user_agent="ua/1").authenticate()

    assert endpoint.auth_token == "tok"
    assert endpoint.cdn_enabled
    request = transport.requests[0]
    assert request.method == "GET"
    assert request.headers["X-Auth-Key"] == "key"
    assert request.headers["User-Agent"] == "ua/1"


def test_authenticate_over_servicenet(transport):
    transport.queue(auth_response())
    endpoint = Authentication("user", "key", AUTH_URL, transport, servicenet=True).authenticate()
    assert endpoint.storage_url.startswith("https://snet-")


def test_rejected_credentials(transport):
    transport.queue(RawResponse(401))
    with pytest.raises(AuthenticationFailedError):
        Authentication("user", "bad", AUTH_URL, transport).authenticate()


def test_auth_service_fault(transport):
    transport.queue(RawResponse(500))
    with pytest.raises(ServerFaultError):
        Authentication("user", "key", AUTH_URL, transport).authenticate()


def test_credentials_required(transport):
    with pytest.raises(ArgumentError) as exc:
        Authentication("user", "", AUTH_URL, transport)
    assert exc.value.argument == "api_key"


def test_static_authentication(endpoint):
    assert StaticAuthentication(endpoint).authenticate() is endpoint
