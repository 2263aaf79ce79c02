"""Shared fixtures for multi-edit tests."""

from pathlib import Path

import pytest


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """Create temporary workspace for testing."""
    return tmp_path
