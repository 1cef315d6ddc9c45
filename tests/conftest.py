"""Shared test fixtures."""

from __future__ import annotations

import os
import time
from pathlib import Path

import pytest

import reclaim.storage as storage
from reclaim.core.scanner import JunkScanner, ScanRoots
from reclaim.settings import Settings

MB = 1024 * 1024
DAY = 86400


def make_file(path: Path, size: int = 0, *, age_days: float | None = None) -> Path:
    """Create a (sparse) file of *size* bytes, optionally back-dated."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    if age_days is not None:
        mtime = time.time() - age_days * DAY
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture(autouse=True)
def isolate_xdg(tmp_path, monkeypatch):
    """Point XDG directories at a temp tree and drop the settings singleton."""
    home = tmp_path / "home"
    for name, sub in (
        ("XDG_CACHE_HOME", ".cache"),
        ("XDG_CONFIG_HOME", ".config"),
        ("XDG_DATA_HOME", ".local/share"),
    ):
        target = home / sub
        target.mkdir(parents=True)
        monkeypatch.setenv(name, str(target))
    monkeypatch.setattr(Settings, "_instance", None)
    return home


@pytest.fixture
def isolate_storage(tmp_path, monkeypatch):
    """Redirect history storage to a temp directory."""
    data_dir = tmp_path / "reclaim_data"
    data_dir.mkdir()
    history_file = data_dir / "history.json"
    monkeypatch.setattr(storage, "HISTORY_FILE", history_file)
    monkeypatch.setattr(storage, "_DATA_DIR", data_dir)
    return history_file


@pytest.fixture
def storage_root(tmp_path):
    """An empty fake shared-storage root."""
    root = tmp_path / "storage" / "emulated" / "0"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def roots(storage_root):
    return ScanRoots.for_storage_root(storage_root)


@pytest.fixture
def scanner(roots):
    return JunkScanner(roots)
