"""Pytest configuration and fixtures."""

# std imports
import logging

# 3rd party
import pytest


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    """Record debug messages of the package, exercising each log call."""
    caplog.set_level(logging.DEBUG, logger='telnetstream')
