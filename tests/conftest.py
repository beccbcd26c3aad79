"""
Global pytest configuration for this repo.

Purpose: keep logger configuration done by CLI commands from leaking between
tests, and provide a plain console for frame assertions.
"""

from __future__ import annotations

import io
import logging

import pytest
from rich.console import Console


@pytest.fixture(autouse=True)
def _restore_devboard_logger():
    logger = logging.getLogger("devboard")
    saved_handlers = list(logger.handlers)
    saved_level = logger.level
    saved_propagate = logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in saved_handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)
    logger.propagate = saved_propagate


@pytest.fixture
def console() -> Console:
    """A plain, non-terminal console that records what the dashboard writes."""
    return Console(file=io.StringIO(), force_terminal=False, no_color=True, width=120)
