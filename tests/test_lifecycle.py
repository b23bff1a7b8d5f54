import logging

import pytest

from core.logging_config import HANDLER_NAME, LIBRARY_LOGGERS
from infrastructure.external import cloudfiles
from infrastructure.external.cloudfiles.exceptions import TransportError
from infrastructure.external.cloudfiles.utils import with_retry


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(cloudfiles.settings.cloudfiles, "username", "user")
    monkeypatch.setattr(cloudfiles.settings.cloudfiles, "api_key", "key")
    cloudfiles.get_cloudfiles_config.cache_clear()
    yield
    cloudfiles.shutdown_connection()
    cloudfiles.get_cloudfiles_config.cache_clear()
    for name in LIBRARY_LOGGERS:
        target = logging.getLogger(name)
        for handler in [h for h in target.handlers if h.get_name() == HANDLER_NAME]:
            target.removeHandler(handler)
        target.propagate = True
        target.setLevel(logging.NOTSET)


def test_config_comes_from_settings(configured):
    config = cloudfiles.get_cloudfiles_config()
    assert config.username == "user"
    assert config.max_retries == 0
    assert config.user_agent.startswith("python-cloudfiles-forge/")


def test_connection_lifecycle(configured):
    with pytest.raises(RuntimeError):
        cloudfiles.get_connection()

    root_handlers = list(logging.getLogger().handlers)
    conn = cloudfiles.init_connection()
    library = logging.getLogger(LIBRARY_LOGGERS[0])
    assert HANDLER_NAME in [h.get_name() for h in library.handlers]
    assert logging.getLogger().handlers == root_handlers
    assert cloudfiles.get_connection() is conn
    assert cloudfiles.init_connection() is conn

    cloudfiles.shutdown_connection()
    with pytest.raises(RuntimeError):
        cloudfiles.get_connection()


def test_with_retry_retries_transport_errors_only():
    calls = []

    @with_retry(max_attempts=3, wait_multiplier=0, wait_max=0)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise TransportError("reset")
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 3

    @with_retry(max_attempts=3, wait_multiplier=0, wait_max=0)
    def broken():
        calls.append(1)
        raise ValueError("bad")

    calls.clear()
    with pytest.raises(ValueError):
        broken()
    assert len(calls) == 1


def test_with_retry_gives_up():
    @with_retry(max_attempts=2, wait_multiplier=0, wait_max=0)
    def down():
        raise TransportError("down")

    with pytest.raises(TransportError):
        down()
