"""Unit tests for console logging setup."""
import logging

import pytest

from logging_config import MODULE_LOGGERS, configure_logging


@pytest.fixture(autouse=True)
def restore_module_loggers():
    saved = {name: (list(logging.getLogger(name).handlers), logging.getLogger(name).level) for name in MODULE_LOGGERS}
    yield
    for name, (handlers, level) in saved.items():
        logger = logging.getLogger(name)
        logger.handlers[:] = handlers
        logger.setLevel(level)


def test_configure_logging_is_idempotent():
    handler = configure_logging("DEBUG")
    assert configure_logging("DEBUG") is handler
    for name in MODULE_LOGGERS:
        assert logging.getLogger(name).handlers.count(handler) == 1


def test_configure_logging_sets_module_levels():
    configure_logging(logging.WARNING)
    assert logging.getLogger("summarizer").level == logging.WARNING
    assert logging.getLogger("providers").level == logging.WARNING

    handler = configure_logging("DEBUG")
    assert logging.getLogger("chunking").level == logging.DEBUG
    assert handler.level == logging.DEBUG


def test_configure_logging_leaves_root_and_sdk_loggers_alone():
    root_handlers = list(logging.getLogger().handlers)
    sdk_handlers = list(logging.getLogger("httpx").handlers)

    handler = configure_logging("INFO")

    assert handler not in logging.getLogger().handlers
    assert logging.getLogger().handlers == root_handlers
    assert logging.getLogger("httpx").handlers == sdk_handlers
