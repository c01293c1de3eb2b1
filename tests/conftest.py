"""Pytest configuration for test isolation.

The saved-goal store writes under a project-relative data directory
(``./.bitbasis``) by default. Tests running in the same working tree would
otherwise see each other's goals, so every test gets its own data directory
via an autouse fixture.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Make sure the workspace `packages/` dir is on sys.path so `bitbasis` is importable
# without an editable install.
_PKG_DIR = Path(__file__).resolve().parents[1] / "packages"
if str(_PKG_DIR) not in sys.path:
    sys.path.insert(0, str(_PKG_DIR))


@pytest.fixture(autouse=True)
def _isolate_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Force a per-test data root and keep import-size limits at their default."""

    data_root = tmp_path / "data"
    data_root.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("BITBASIS_DATA_DIR", os.fspath(data_root))
    monkeypatch.delenv("BITBASIS_MAX_UPLOAD_BYTES", raising=False)
    monkeypatch.delenv("BITBASIS_API_URL", raising=False)
    monkeypatch.delenv("BITBASIS_API_TOKEN", raising=False)
    monkeypatch.setenv("BITBASIS_LOG_LEVEL", "WARNING")
    return data_root
