"""Pytest fixtures for zae-fixtures tests."""

import pytest

from zae_fixtures import TestRegistry, WrapperOptions, wrap


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep wrapper options independent of the developer's environment."""
    monkeypatch.delenv("ZAE_FIXTURES_SEPARATOR", raising=False)
    monkeypatch.delenv("ZAE_FIXTURES_TEARDOWN_ERRORS", raising=False)


@pytest.fixture
def registry():
    """A registration function that records tests."""
    return TestRegistry()


@pytest.fixture
def wrapped(registry):
    """A wrapper with zero layers around the registry."""
    return wrap(registry, options=WrapperOptions())


@pytest.fixture
def events():
    """Ordered log of setup/teardown markers."""
    return []
