"""
Shared Test Fixtures
====================

Most tests drive the real protocol engine against the simulated bus, so
every pin write and every decoded transfer can be inspected.
"""

import os

import pytest

from hd44780.backends.simulator import SimulatedBus


@pytest.fixture
def bus() -> SimulatedBus:
    """A simulated 16x2 module."""
    return SimulatedBus(columns=16, rows=2)


@pytest.fixture
def bus4() -> SimulatedBus:
    """A simulated 20x4 module."""
    return SimulatedBus(columns=20, rows=4)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep HD44780_* variables of the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("HD44780_"):
            monkeypatch.delenv(key)
