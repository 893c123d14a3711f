import logging

import pytest
import structlog

from ticker_watch.infrastructure.logger import get_logger, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    noisy = {name: logging.getLogger(name).level for name in ("urllib3", "requests")}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, noisy_level in noisy.items():
        logging.getLogger(name).setLevel(noisy_level)
    structlog.reset_defaults()


def test_setup_sets_root_level_and_quiets_http_libraries(restore_logging):
    setup_logging("debug", "text")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.WARNING
    assert logging.getLogger("requests").level == logging.WARNING


def test_http_libraries_follow_stricter_root_level(restore_logging):
    setup_logging("ERROR", "json")

    assert logging.getLogger().level == logging.ERROR
    assert logging.getLogger("urllib3").level == logging.ERROR


def test_unknown_level_is_rejected(restore_logging):
    with pytest.raises(ValueError):
        setup_logging("verbose")


def test_logger_carries_initial_context():
    with structlog.testing.capture_logs() as logs:
        get_logger("ticker_watch.scheduler.poller", component="poller").info("ciclo")

    assert logs == [{'component': "poller", 'event': "ciclo", 'log_level': "info"}]
