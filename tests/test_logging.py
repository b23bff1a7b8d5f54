import logging

import pytest

from core.logging_config import HANDLER_NAME, configure_logging, get_logger, mask_headers


@pytest.fixture
def scratch_logger():
    name = "tests.logging.scratch"
    target = logging.getLogger(name)
    yield name
    target.handlers.clear()
    target.propagate = True
    target.setLevel(logging.NOTSET)


def test_mask_headers_hides_credentials():
    masked = mask_headers({"X-Auth-Token": "tok", "X-Auth-Key": "key", "Range": "bytes=0-1"})
    assert masked == {"X-Auth-Token": "***", "X-Auth-Key": "***", "Range": "bytes=0-1"}


def test_logger_emits_stdlib_records_with_context(caplog):
    logger = get_logger("tests.logging.records")
    with caplog.at_level(logging.INFO, logger="tests.logging.records"):
        logger.info("Created container", container="photos")
    [record] = caplog.records
    assert record.getMessage() == "Created container"
    assert record.container == "photos"


def test_configure_logging_leaves_root_handlers_alone(scratch_logger):
    root = logging.getLogger()
    before = list(root.handlers)

    configure_logging(level="warning", logger_names=[scratch_logger])
    configure_logging(level="warning", logger_names=[scratch_logger])

    target = logging.getLogger(scratch_logger)
    assert root.handlers == before
    assert [h.get_name() for h in target.handlers] == [HANDLER_NAME]
    assert target.level == logging.WARNING
    assert target.propagate is False
