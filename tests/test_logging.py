import logging

import pytest
import structlog

from receiptsplit.logging import NOISY_LOGGERS, configure_logging, get_logger


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_http_client_loggers_are_quieted():
    configure_logging("debug", json_logs=False)
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
    get_logger(__name__).debug("logging.ready")


def test_unknown_level_is_rejected():
    with pytest.raises(ValueError):
        configure_logging("LOUD")
