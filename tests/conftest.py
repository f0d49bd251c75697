"""
Shared test fixtures for recform tests.

Small ad-hoc transformers used across test modules are defined here so
every module exercises the same behaviors.
"""

from __future__ import annotations

import pytest

from recform import UNCHANGED, Replacement, function_transformer
from recform import scripted


# ---------------------------------------------------------------------------
# Ad-hoc transformers
# ---------------------------------------------------------------------------
def _declining(key, value):
    return UNCHANGED


def _deleting(key, value):
    return Replacement.delete()


def _doubling(key, value):
    if isinstance(value, int) and not isinstance(value, bool):
        return Replacement.of(key, value * 2)
    return UNCHANGED


@pytest.fixture
def declining():
    """A transformer that declines on every pair."""
    return function_transformer(_declining)


@pytest.fixture
def deleting():
    """A transformer that deletes every pair."""
    return function_transformer(_deleting)


@pytest.fixture
def doubling():
    """A transformer that doubles integer values and declines otherwise."""
    return function_transformer(_doubling)


@pytest.fixture
def python_engine(monkeypatch):
    """Enable the Python script engine for one test only."""
    monkeypatch.setitem(scripted._engines, scripted.PYTHON, scripted.evaluate_python)


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (runs files through the full stack)",
    )
