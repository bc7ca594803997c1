"""Pytest configuration.

Run pytest from this project's root; pythonpath in pyproject.toml puts src/
on the import path so `corolint` and `tests` resolve without installing.
"""

import logging
from collections.abc import Iterator

import pytest


@pytest.fixture(autouse=True)
def _restore_corolint_log_level() -> Iterator[None]:
    """CLIAppFactory.configure_logging sets the package logger level; undo it after each test."""
    logger = logging.getLogger("corolint")
    level = logger.level
    yield
    logger.setLevel(level)
