"""Tests for storage estimation."""

from __future__ import annotations

import shutil
import subprocess
from collections import namedtuple

import pytest

import reclaim.core.storage_info as storage_info
from reclaim.core.storage_info import APP_CACHE_USED_RATIO, StorageEstimator, parse_df, parse_du

from conftest import make_file

GB = 1024 ** 3

DiskUsage = namedtuple("DiskUsage", "total used free")

DF_OUTPUT = """\
Filesystem     1K-blocks     Used Available Use% Mounted on
/dev/block/dm-5 115343360 60000000  55343360  53% /data
"""


def _no_disk_usage(path):
    raise OSError("not supported")


class TestParseDf:
    def test_parses_first_row(self):
        assert parse_df(DF_OUTPUT) == (115343360 * 1024, 60000000 * 1024, 55343360 * 1024)

    @pytest.mark.parametrize(
        "output",
        ["", "Filesystem 1K-blocks Used Available\n", "header\n/dev/x 12 nope 3 4% /\n", "header\n/dev/x 0 0 0 0% /\n"],
    )
    def test_rejects_bad_output(self, output):
        assert parse_df(output) is None


class TestReadStorage:
    def test_uses_disk_usage(self, monkeypatch):
        monkeypatch.setattr(shutil, "disk_usage", lambda p: DiskUsage(110 * GB, 60 * GB, 50 * GB))

        snap = StorageEstimator("/data").read_storage()

        assert snap.total_bytes == 110 * GB
        assert snap.used_bytes == 60 * GB
        assert snap.free_bytes == 50 * GB
        assert snap.marketed_gb == 128
        assert not snap.is_fallback

    def test_falls_back_to_df(self, monkeypatch):
        monkeypatch.setattr(shutil, "disk_usage", _no_disk_usage)
        monkeypatch.setattr(
            storage_info.subprocess,
            "run",
            lambda *a, **kw: subprocess.CompletedProcess(args=a, returncode=0, stdout=DF_OUTPUT, stderr=""),
        )

        snap = StorageEstimator("/data").read_storage()

        assert snap.total_gb == pytest.approx(110.0)
        assert snap.marketed_gb == 128

    def test_defaults_when_everything_fails(self, monkeypatch):
        monkeypatch.setattr(shutil, "disk_usage", _no_disk_usage)
        monkeypatch.setattr(
            storage_info.subprocess,
            "run",
            lambda *a, **kw: subprocess.CompletedProcess(args=a, returncode=1, stdout="", stderr="df: nope"),
        )

        snap = StorageEstimator("/nowhere").read_storage()

        assert snap.is_fallback
        assert snap.total_gb == 64
        assert snap.used_gb == 48
        assert snap.free_gb == 16
        assert snap.marketed_gb == 64

    def test_df_missing_binary(self, monkeypatch):
        def no_df(*a, **kw):
            raise FileNotFoundError("df")

        monkeypatch.setattr(shutil, "disk_usage", _no_disk_usage)
        monkeypatch.setattr(storage_info.subprocess, "run", no_df)

        assert StorageEstimator("/").read_storage().is_fallback

    def test_real_filesystem(self, tmp_path):
        snap = StorageEstimator(tmp_path).read_storage()
        assert snap.total_bytes > 0
        assert snap.marketed_gb > 0
        assert 0 <= snap.usage_percent <= 100


class TestDownloadsUsage:
    def test_sums_top_level_files(self, roots, storage_root, monkeypatch):
        monkeypatch.setattr(shutil, "disk_usage", lambda p: DiskUsage(55 * GB, 40 * GB, 15 * GB))
        make_file(storage_root / "Download" / "a.pdf", 1000)
        make_file(storage_root / "Download" / "b.zip", 2000)
        make_file(storage_root / "Download" / "nested" / "c.bin", 4000)

        snap = StorageEstimator(storage_root).downloads_usage(roots)

        assert snap.used_bytes == 3000
        assert snap.total_bytes == 55 * GB
        assert snap.free_bytes == 15 * GB
        assert snap.marketed_gb == 64

    def test_no_downloads_dir(self, roots, storage_root):
        snap = StorageEstimator(storage_root).downloads_usage(roots)
        assert snap.used_bytes == 0


class TestAppCachesSize:
    @pytest.fixture
    def cache_dirs(self, tmp_path):
        for package in ("com.example.a", "com.example.b"):
            (tmp_path / "data" / package / "cache").mkdir(parents=True)
        return str(tmp_path / "data" / "*" / "cache")

    def test_parse_du(self):
        output = "120\t/data/data/a/cache\n8\t/data/data/b/cache\ndu: cannot read\n\n"
        assert parse_du(output) == 128 * 1024

    def test_sums_du_output(self, cache_dirs, monkeypatch):
        calls = []

        def fake_run(args, **kwargs):
            calls.append(args)
            return subprocess.CompletedProcess(args, 0, stdout="40\tx\n24\ty\n", stderr="")

        monkeypatch.setattr(storage_info.subprocess, "run", fake_run)

        assert StorageEstimator().app_caches_size(cache_dirs) == 64 * 1024
        assert calls[0][:3] == ["du", "-s", "-k"]
        assert len(calls[0]) == 5

    def test_falls_back_to_share_of_used(self, tmp_path, monkeypatch):
        monkeypatch.setattr(shutil, "disk_usage", lambda p: DiskUsage(100 * GB, 40 * GB, 60 * GB))

        size = StorageEstimator(tmp_path).app_caches_size(str(tmp_path / "none" / "*" / "cache"))

        assert size == int(40 * GB * APP_CACHE_USED_RATIO)

    def test_failing_du_uses_estimate(self, cache_dirs, monkeypatch):
        monkeypatch.setattr(shutil, "disk_usage", lambda p: DiskUsage(100 * GB, 20 * GB, 80 * GB))
        monkeypatch.setattr(
            storage_info.subprocess,
            "run",
            lambda args, **kw: subprocess.CompletedProcess(args, 1, stdout="", stderr="denied"),
        )

        assert StorageEstimator().app_caches_size(cache_dirs) == int(20 * GB * 0.15)
