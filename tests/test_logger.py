import logging

import pytest

from hubblecli import logger


@pytest.fixture(autouse=True)
def fresh_logger():
    logger._reset()
    yield
    logger._reset()


def test_get_logger_before_initialize_raises():
    with pytest.raises(RuntimeError):
        logger.get_logger()


def test_debug_level():
    configured = logger.initialize(True)
    assert configured.level == logging.DEBUG
    assert logger.get_logger() is configured


def test_info_level():
    assert logger.initialize(False).level == logging.INFO


def test_initialize_happens_once():
    first = logger.initialize(False)
    second = logger.initialize(True)
    assert second is first
    assert logger.get_logger().level == logging.INFO


def test_debug_message_with_field(capsys):
    logger.initialize(True)
    logger.get_logger().debug("Using config file", extra={"fields": {"config-file": "/tmp/x.yaml"}})
    err = capsys.readouterr().err
    assert err.startswith("time=")
    assert 'level=debug msg="Using config file" config-file=/tmp/x.yaml' in err


def test_debug_suppressed_at_info_level(capsys):
    logger.initialize(False)
    logger.get_logger().debug("Using config file")
    assert capsys.readouterr().err == ""


def test_plain_message_is_not_quoted(capsys):
    logger.initialize(False)
    logger.get_logger().info("ready")
    err = capsys.readouterr().err
    assert "level=info msg=ready" in err
    assert len(err.strip().splitlines()) == 1