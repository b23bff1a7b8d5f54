"""Authentication provider: credentials in, storage endpoint out."""
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from core.logging_config import get_logger
from .base import Authenticator, CloudFilesRequest, Transport
from .descriptors import GetAuthentication
from .models import StorageEndpoint
from .responses import ResponseTranslator
from .validators import require

logger = get_logger(__name__)


def servicenet_url(url: str) -> str:
    """Rewrite a storage URL to its internal ``snet-`` host."""
    parts = urlsplit(url)
    if parts.hostname is None or parts.netloc.startswith("snet-"):
        return url
    return urlunsplit(parts._replace(netloc=f"snet-{parts.netloc}"))


class Authentication(Authenticator):
    """Authenticates against the v1.0 auth service with user name and API key."""

    def __init__(
        self,
        username: str,
        api_key: str,
        auth_url: str,
        transport: Transport,
        user_agent: Optional[str] = None,
        servicenet: bool = False,
        translator: Optional[ResponseTranslator] = None,
    ):
        require(username=username, api_key=api_key, auth_url=auth_url)
        self.username = username
        self._api_key = api_key
        self.auth_url = auth_url
        self.transport = transport
        self.user_agent = user_agent
        self.servicenet = servicenet
        self.translator = translator or ResponseTranslator()

    def authenticate(self) -> StorageEndpoint:
        """
        Returns:
            Endpoint with storage URL, token and optional CDN management URL

        Raises:
            AuthenticationFailedError: Credentials rejected or incomplete response
            StorageServiceError: Any other non-success status
            TransportError: Connection-level failure
        """
        descriptor = GetAuthentication(self.auth_url, self.username, self._api_key, self.user_agent)
        request = CloudFilesRequest()
        descriptor.apply(request)

        response = self.transport.send(request)
        endpoint: StorageEndpoint = self.translator.translate(descriptor, response).unwrap()

        if self.servicenet:
            endpoint = endpoint.model_copy(update={"storage_url": servicenet_url(endpoint.storage_url)})

        logger.info(
            "Authenticated",
            username=self.username,
            storage_url=endpoint.storage_url,
            cdn_enabled=endpoint.cdn_enabled,
        )
        return endpoint


class StaticAuthentication(Authenticator):
    """Authenticator returning a pre-issued endpoint (token obtained elsewhere)."""

    def __init__(self, endpoint: StorageEndpoint):
        self.endpoint = endpoint

    def authenticate(self) -> StorageEndpoint:
        return self.endpoint
