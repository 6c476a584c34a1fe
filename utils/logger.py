import datetime
import functools
import logging
import os
import time
import uuid
from typing import Optional

LOGS_DIR = "logs"
ROOT_LOGGER_NAME = "tilegrid"

# Log levels understood by the settings file
LOG_LEVELS = {"NONE": 0, "BASIC": 1, "DETAILED": 2}
LOG_LEVEL = LOG_LEVELS["BASIC"]  # Can be changed at runtime via set_log_level

# Unique ID for each session
SESSION_ID = uuid.uuid4().hex[:8]

_SESSION_HANDLER: Optional[logging.Handler] = None


def get_logger(name: str) -> logging.Logger:
    """Return a logger living under the ``tilegrid`` namespace."""

    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_log_level(level: str | int) -> None:
    """Switch the session level (``NONE``, ``BASIC`` or ``DETAILED``)."""

    global LOG_LEVEL
    if isinstance(level, str):
        try:
            LOG_LEVEL = LOG_LEVELS[level.upper()]
        except KeyError as exc:
            raise ValueError(f"unknown log level '{level}'") from exc
    else:
        LOG_LEVEL = int(level)

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if LOG_LEVEL >= LOG_LEVELS["DETAILED"]:
        root.setLevel(logging.DEBUG)
    elif LOG_LEVEL == LOG_LEVELS["BASIC"]:
        root.setLevel(logging.INFO)
    else:
        root.setLevel(logging.CRITICAL + 1)


def configure_logging(level: str | int = "BASIC", log_dir: Optional[str] = LOGS_DIR) -> logging.Logger:
    """Set the session level and optionally attach a per-session log file.

    The file is named ``movement_log_<timestamp>_<session>.txt``; pass
    ``log_dir=None`` to keep logging in memory/stream handlers only.
    """

    global _SESSION_HANDLER
    set_log_level(level)
    root = logging.getLogger(ROOT_LOGGER_NAME)

    if log_dir is not None and _SESSION_HANDLER is None:
        os.makedirs(log_dir, exist_ok=True)
        now = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(log_dir, f"movement_log_{now}_{SESSION_ID}.txt")
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(name)s %(levelname)s %(message)s"))
        root.addHandler(handler)
        _SESSION_HANDLER = handler
        root.info("Log session %s started", SESSION_ID)

    return root


def log_calls(func):
    """Decorator logging calls, results and execution time of ``func``."""

    logger = get_logger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if LOG_LEVEL < LOG_LEVELS["DETAILED"] or not logger.isEnabledFor(logging.DEBUG):
            return func(*args, **kwargs)

        logger.debug("Call %s args=%s kwargs=%s", func.__qualname__, args, kwargs)
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start_time
        logger.debug("Return %s: %s", func.__qualname__, result)
        logger.debug("Execution time %s: %.6f s", func.__qualname__, elapsed)
        return result

    return wrapper
