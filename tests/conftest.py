"""Shared fixtures for DOM snapshot tests."""

import os

import pytest

pytest_plugins = ["pytester"]


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "smoke: mark test as smoke test (fast, critical path - included in CI)"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test requiring a real browser"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# Set test environment variables before importing modules
os.environ.setdefault("UPDATE_BASELINE", "false")


@pytest.fixture
def mock_env_vars(monkeypatch, tmp_path):
    """Set up test environment variables."""
    monkeypatch.setenv("BASELINE_DIR", str(tmp_path / "baseline"))
    monkeypatch.setenv("ACTUAL_DIR", str(tmp_path / "actual"))
    monkeypatch.setenv("DIFF_DIR", str(tmp_path / "diff"))
    monkeypatch.setenv("UPDATE_BASELINE", "false")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    for name in ("MODE", "STORAGE", "AUTO_WRITE", "FAIL_ON_MISMATCH", "LOG_JSON"):
        monkeypatch.delenv(name, raising=False)
