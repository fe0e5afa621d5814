"""Pytest configuration: set test env before any docbridge imports so settings use test values."""

import os
import tempfile

import pytest

# Set before docbridge.config is used so settings and the app use test paths
_tmp = tempfile.mkdtemp(prefix="docbridge_test_")
os.environ.setdefault("DOCBRIDGE_STORAGE_BASE_PATH", os.path.join(_tmp, "storage"))
os.environ.setdefault("DOCBRIDGE_STATE_PATH", os.path.join(_tmp, "state.json"))
os.environ.setdefault("DOCBRIDGE_JWT_SECRET", "test-jwt-secret-at-least-32-characters-long")
os.environ.setdefault("DOCBRIDGE_PUBLIC_BASE_URL", "https://cloud.example.com")

TEST_SECRET = os.environ["DOCBRIDGE_JWT_SECRET"]


@pytest.fixture
def secret() -> str:
    """Hash secret shared with the app under test."""
    return TEST_SECRET


@pytest.fixture
def storage_root(tmp_path, monkeypatch):
    """Point the app's storage at a fresh temp dir and return it."""
    root = tmp_path / "storage"
    root.mkdir()
    monkeypatch.setenv("DOCBRIDGE_STORAGE_BASE_PATH", str(root))
    monkeypatch.setenv("DOCBRIDGE_STATE_PATH", str(tmp_path / "state.json"))
    return root
