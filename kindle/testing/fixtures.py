"""
Kindle Testing - Pytest Fixtures.

Import ``kindle_fixtures`` in your ``conftest.py`` to register the
fixtures::

    from kindle.testing.fixtures import kindle_fixtures
    kindle_fixtures()
"""

from __future__ import annotations

import pytest

from kindle.config import Settings
from kindle.coordinator import Coordinator, reset_default_coordinator, set_default_coordinator
from .faults import MockFaultEngine


def kindle_fixtures():
    """
    Register kindle pytest fixtures.

    This is a no-op; importing the module registers the fixtures. The
    function exists as a documentation anchor.
    """
    pass


@pytest.fixture
def fault_engine():
    """A :class:`MockFaultEngine` capturing reported faults."""
    engine = MockFaultEngine()
    yield engine
    engine.reset()


@pytest.fixture
def settings():
    """Default :class:`Settings`; tests may mutate it before use."""
    return Settings()


@pytest.fixture
def coordinator(fault_engine, settings):
    """An isolated coordinator wired to the mock fault engine."""
    return Coordinator(settings, fault_engine=fault_engine)


@pytest.fixture
def default_coordinator(fault_engine):
    """Install a fresh default coordinator for the module-level API."""
    coord = Coordinator(fault_engine=fault_engine)
    set_default_coordinator(coord)
    yield coord
    reset_default_coordinator()
