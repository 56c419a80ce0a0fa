# src/repocat/utils/logger.py
import logging
import os
import sys

APP_NAME = "repocat"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Library default: stay silent unless the host application configures handlers.
logging.getLogger(APP_NAME).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Returns a logger under the package namespace."""
    if name != APP_NAME and not name.startswith(APP_NAME + "."):
        name = f"{APP_NAME}.{name}"
    return logging.getLogger(name)


def setup_logger(verbose: bool = False) -> logging.Logger:
    """
    Attaches a single stderr handler to the package logger.
    REPOCAT_DEBUG=1 forces DEBUG output regardless of `verbose`.
    """
    logger = logging.getLogger(APP_NAME)

    if os.environ.get("REPOCAT_DEBUG"):
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logger.setLevel(level)

    if not any(getattr(h, "_repocat_stream", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._repocat_stream = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    for h in logger.handlers:
        if getattr(h, "_repocat_stream", False):
            # sys.stderr may have been replaced since the handler was created
            h.setStream(sys.stderr)
            h.setLevel(level)
    return logger
