"""Project-wide pytest configuration hooks."""

from __future__ import annotations

import logging
from typing import Generator

import pytest

from utils import logger as log_module


@pytest.fixture(autouse=True)
def _restore_log_level() -> Generator[None, None, None]:
    """Keep tests that switch the session log level from leaking it."""

    root = logging.getLogger(log_module.ROOT_LOGGER_NAME)
    previous, previous_root = log_module.LOG_LEVEL, root.level
    yield
    log_module.LOG_LEVEL = previous
    root.setLevel(previous_root)
