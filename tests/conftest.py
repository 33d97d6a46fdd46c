"""Pytest configuration shared by all task2model tests."""

import sys
from pathlib import Path

import pytest

# Add the project root and src directory to Python path so tests can import properly
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(project_root / "src"))

from task2model.config import Settings  # noqa: E402
from task2model.services.store import MemoryStore  # noqa: E402
from tests.fixtures import FIXED_NOW  # noqa: E402


@pytest.fixture(autouse=True)
def _no_api_key(monkeypatch):
    """Keep a developer's real key out of tests that build clients from the environment."""
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def settings(tmp_path):
    return Settings(api_key=None, cache_dir=tmp_path / "cache")
