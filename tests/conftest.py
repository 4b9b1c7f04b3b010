# tests/conftest.py
from __future__ import annotations

import pytest

from primeproof.registry import discover
from primeproof.runner import TestRunner
from primeproof.runtime import reset


@pytest.fixture(autouse=True)
def fresh_runtime():
    """Every test starts from built-in defaults (no profile applied, debug off)."""
    rt = reset()
    yield rt
    reset()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Point the workspace at a temporary directory."""
    monkeypatch.setenv("PRIMEPROOF_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture(scope="session")
def index():
    """Discover the packaged primality tests once."""
    return discover()


@pytest.fixture(scope="session")
def runner(index):
    return TestRunner(index=index)
