"""
logging_config.py
One place to wire up console logging for the summarizer modules.

Modules log through `logging.getLogger(__name__)`; call `configure_logging()`
once from the host application to see those records. Only this package's
loggers get the handler, so SDK loggers (openai, anthropic, httpx) keep
whatever the host configured for them.
"""

import logging
import sys
from typing import Optional, Union

import config

MODULE_LOGGERS = ("chunking", "prompts", "providers", "summarizer", "mcq")

_handler: Optional[logging.Handler] = None


def configure_logging(level: Optional[Union[int, str]] = None) -> logging.Handler:
    """
    Attach a single timestamped stream handler to each module logger.
    Safe to call more than once; handlers are not duplicated.
    """
    global _handler
    level = level if level is not None else config.LOG_LEVEL

    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(config.LOG_FORMAT, datefmt=config.LOG_DATE_FORMAT))
    _handler.setLevel(level)

    for name in MODULE_LOGGERS:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        if _handler not in logger.handlers:
            logger.addHandler(_handler)
    return _handler
