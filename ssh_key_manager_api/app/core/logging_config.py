"""
Logging configuration for the key manager.

Handlers are attached to the ``ssh_key_manager_api`` package logger
rather than the root logger, so uvicorn keeps its own access and error
logging untouched and the service's records do not show up twice.

Store write-back failures and subscriber delivery failures are logged
at WARNING.  Keep the level at INFO or WARNING in production so that
drift between memory and the backing files stays visible.
"""

import logging
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "ssh_key_manager_api"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# sse-starlette logs every ping and disconnect at DEBUG.
CHATTY_LOGGERS = ("sse_starlette.sse",)

_HANDLER_MARK = "_ssh_key_manager_handler"


def _mark(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_MARK, True)
    return handler


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> logging.Logger:
    """Configure the package logger and return it.

    ``level`` is a level name, case insensitive; unknown names mean
    ``INFO``.  Calling this again only changes the level, so repeated
    ``create_app`` calls (as in the tests) do not stack handlers.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric_level)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.INFO))

    if any(getattr(handler, _HANDLER_MARK, False) for handler in logger.handlers):
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [_mark(logging.StreamHandler())]
    if logfile:
        handlers.append(_mark(logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger
