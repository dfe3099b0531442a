# tests/conftest.py
from __future__ import annotations

import pytest

from fastfib.runtime import reset


@pytest.fixture(autouse=True)
def isolated_workspace(tmp_path, monkeypatch):
    """Point FASTFIB_HOME at a per-test directory and start from a clean Runtime."""
    ws = tmp_path / "workspace"
    monkeypatch.setenv("FASTFIB_HOME", str(ws))
    reset()
    yield ws
    reset()
