"""Fixtures shared by CLI command tests."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Each CLI run reconfigures logging onto the runner's stderr; undo it."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
