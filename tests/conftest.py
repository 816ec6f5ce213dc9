"""
Shared test fixtures for the kindle test suite.
"""

import logging

import pytest

from kindle.testing.fixtures import kindle_fixtures
kindle_fixtures()

# Import fixtures so pytest can discover them
from kindle.testing.fixtures import (  # noqa: F401
    coordinator,
    default_coordinator,
    fault_engine,
    settings,
)


# ============================================================================
# Helpers
# ============================================================================


class Recorder:
    """Collects calls in order, for asserting on callback sequencing."""

    def __init__(self):
        self.calls = []

    def mark(self, label):
        def _record(*args):
            self.calls.append(label)
        return _record


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture(autouse=True)
def _clear_kindle_env(monkeypatch):
    """Keep KINDLE_* variables from the host out of settings tests."""
    import os
    for key in list(os.environ):
        if key.startswith("KINDLE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def kindle_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="kindle")
    return caplog
