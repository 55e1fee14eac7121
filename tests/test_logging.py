import logging

import colorlog
import pytest

from bundlereco.core.logging import QUIET_LOGGERS, configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_development_logs_are_colored_debug(settings):
    level = configure_logging(settings.model_copy(update={"DEBUG": True}))
    root = logging.getLogger()
    assert level == logging.DEBUG
    assert root.level == logging.DEBUG
    assert isinstance(root.handlers[0].formatter, colorlog.ColoredFormatter)
    assert all(logging.getLogger(name).level == logging.WARNING for name in QUIET_LOGGERS)


def test_production_logs_are_plain(settings):
    level = configure_logging(settings.model_copy(update={"APP_ENV": "production"}))
    formatter = logging.getLogger().handlers[0].formatter
    assert level == logging.INFO
    assert not isinstance(formatter, colorlog.ColoredFormatter)
