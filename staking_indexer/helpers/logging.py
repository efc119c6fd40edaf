"""Logger factory shared by every module (``logger = get_logger(__name__)``)."""

import logging
import sys

import colorlog

from staking_indexer.helpers.config import get_log_level

loggers: dict[str, logging.Logger] = {}

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

_STREAMS = ("stdout", "stderr")


def _build_handler(log_handler: str, log_color: bool) -> logging.Handler:
    if log_handler not in _STREAMS:
        err_msg = f"Invalid handler: {log_handler}"
        raise ValueError(err_msg)

    stream = getattr(sys, log_handler)
    if log_color:
        handler: logging.Handler = colorlog.StreamHandler(stream)
        handler.setFormatter(
            colorlog.ColoredFormatter(f"%(log_color)s{LOG_FORMAT}", log_colors=LOG_COLORS)
        )
    else:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def get_logger(
    name: str,
    log_handler: str = "stdout",
    log_level: str | None = None,
    log_color: bool = False,
) -> logging.Logger:
    """Get a configured logger, cached by name.

    The first call for a name decides its handler and level, later calls
    return the cached logger unchanged.

    Args:
        name: Logger name, usually the module's ``__name__``
        log_handler: Stream to write to, 'stdout' or 'stderr'
        log_level: One of LOG_LEVELS, defaults to LOG_LEVEL from the environment
        log_color: Whether to color records by level with colorlog

    Returns:
        logging.Logger: Configured logger instance

    Raises:
        ValueError: If the handler or log level is unknown
    """
    if name in loggers:
        return loggers[name]

    level_name = (log_level or get_log_level()).upper()
    if level_name not in LOG_LEVELS:
        err_msg = f"Invalid log level: {log_level or level_name}"
        raise ValueError(err_msg)
    level = LOG_LEVELS[level_name]

    handler = _build_handler(log_handler, log_color)
    handler.setLevel(level)

    logger = colorlog.getLogger(name) if log_color else logging.getLogger(name)
    logger.setLevel(level)
    logger.addHandler(handler)

    loggers[name] = logger
    return logger


__all__ = ["LOG_COLORS", "LOG_FORMAT", "LOG_LEVELS", "get_logger"]
