"""Pytest bootstrap configuration.

Ensure environment variables are set before modules that read application
settings are imported, and provide transport / filesystem doubles.
"""
import io
import os

# Console log rendering and no ambient credentials during tests
os.environ.setdefault("DEBUG", "true")
os.environ.pop("CLOUDFILES__USERNAME", None)
os.environ.pop("CLOUDFILES__API_KEY", None)

import pytest

from infrastructure.external.cloudfiles.base import RawResponse
from infrastructure.external.cloudfiles.models import StorageEndpoint


STORAGE_URL = "https://storage.example.com/v1/MossoCloudFS_abc"
CDN_URL = "https://cdn.example.com/v1/MossoCloudFS_abc"
AUTH_URL = "https://auth.example.com/v1.0"


class RecordingTransport:
    """Records every request and answers from a queue of responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.payloads = []
        self.closed = False

    def queue(self, *responses):
        self.responses.extend(responses)

    def send(self, request, *, stream=False):
        self.requests.append(request)
        self.payloads.append(b"".join(request.iter_content(4)) if request.has_content else b"")
        return self.responses.pop(0)

    def close(self):
        self.closed = True


class _Sink(io.BytesIO):
    def __init__(self, on_close):
        super().__init__()
        self._on_close = on_close

    def close(self):
        if not self.closed:
            self._on_close(self.getvalue())
        super().close()


class MemoryFileSystem:
    """In-memory files; remembers every stream it hands out."""

    def __init__(self, files=None):
        self.files = dict(files or {})
        self.opened = []
        self.written = {}

    def open_read(self, path):
        if path not in self.files:
            raise FileNotFoundError(path)
        stream = io.BytesIO(self.files[path])
        self.opened.append(stream)
        return stream

    def open_write(self, path):
        return _Sink(lambda data: self.written.__setitem__(path, data))

    def size(self, path):
        data = self.files.get(path)
        return None if data is None else len(data)


def auth_response(token="tok1", cdn=True):
    headers = {"X-Auth-Token": token, "X-Storage-Url": STORAGE_URL}
    if cdn:
        headers["X-CDN-Management-Url"] = CDN_URL
    return RawResponse(204, headers=headers)


@pytest.fixture
def endpoint():
    return StorageEndpoint(storage_url=STORAGE_URL, auth_token="tok1", cdn_management_url=CDN_URL)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def filesystem():
    return MemoryFileSystem()
