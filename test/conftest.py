import pytest

from poolscan.config import manager


@pytest.fixture
def fresh_config(monkeypatch):
    """Drop the cached global configuration around a test."""
    monkeypatch.setattr(manager, "_config_manager", None)
    yield
    manager._config_manager = None
