"""Fixtures for command-line tests."""

import logging

import pytest


@pytest.fixture(autouse=True)
def restore_root_logger():
    """configure_logging() reconfigures the root logger; put it back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
