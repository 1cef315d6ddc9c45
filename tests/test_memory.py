"""Tests for memory estimation."""

from __future__ import annotations

import pytest

from reclaim.core.memory import (
    MemoryEstimator,
    fallback_snapshot,
    parse_meminfo,
    snapshot_from_counters,
)

MEMINFO = """\
MemTotal:        3891232 kB
MemFree:          200000 kB
MemAvailable:    1500000 kB
Buffers:          100000 kB
Cached:           800000 kB
SwapCached:            0 kB
SwapTotal:             0 kB
SwapFree:              0 kB
HugePages_Total:       0
"""

MEMINFO_NO_AVAILABLE = """\
MemTotal:        3891232 kB
MemFree:          200000 kB
Buffers:          100000 kB
Cached:           800000 kB
SwapTotal:       2097148 kB
"""


@pytest.fixture
def meminfo(tmp_path):
    path = tmp_path / "meminfo"
    path.write_text(MEMINFO)
    return path


def _estimator(meminfo, tmp_path, sleep=lambda s: None) -> MemoryEstimator:
    return MemoryEstimator(
        meminfo,
        tmp_path / "no-such-dir" / "drop_caches",
        settle_seconds=0,
        sleep=sleep,
    )


class TestParseMeminfo:
    def test_extracts_known_counters(self):
        counters = parse_meminfo(MEMINFO)
        assert counters == {
            "total": 3891232,
            "free": 200000,
            "available": 1500000,
            "buffers": 100000,
            "cached": 800000,
            "swap": 0,
        }

    def test_ignores_garbage(self):
        assert parse_meminfo("MemTotal: lots kB\nnonsense\nCached:\n") == {}

    def test_swap_cached_is_not_cached(self):
        assert "cached" not in parse_meminfo("SwapCached:  1234 kB\n")


class TestReadMemory:
    def test_reads_counters(self, meminfo, tmp_path):
        snap = _estimator(meminfo, tmp_path).read_memory()

        assert snap.total_mb == pytest.approx(3891232 / 1024)
        assert snap.available_mb == pytest.approx(1500000 / 1024)
        assert snap.used_mb == pytest.approx((3891232 - 1500000) / 1024)
        assert snap.freeable_mb == pytest.approx(900000 / 1024 * 0.4)
        assert snap.physical_mb == 4096
        assert snap.swap_mb == 0
        assert not snap.has_swap
        assert not snap.is_fallback

    def test_available_derived_when_missing(self, tmp_path):
        path = tmp_path / "meminfo"
        path.write_text(MEMINFO_NO_AVAILABLE)

        snap = _estimator(path, tmp_path).read_memory()

        assert snap.available_mb == pytest.approx((200000 + 800000 + 100000) / 1024)
        assert snap.swap_mb == pytest.approx(2097148 / 1024)
        assert snap.has_swap
        # swap shifts the guess down to the tier below the reported total
        assert snap.physical_mb == 2048

    def test_missing_file_returns_fallback(self, tmp_path):
        snap = _estimator(tmp_path / "absent", tmp_path).read_memory()

        assert snap.is_fallback
        assert snap.total_mb == 2048
        assert snap.available_mb == 512
        assert snap.used_mb == 1536
        assert snap.freeable_mb == 128
        assert snap.physical_mb == 2048
        assert snap.swap_mb == 0

    def test_zero_total_returns_fallback(self, tmp_path):
        path = tmp_path / "meminfo"
        path.write_text("MemTotal: 0 kB\nMemAvailable: 100 kB\n")
        assert _estimator(path, tmp_path).read_memory() == fallback_snapshot()

    def test_unparseable_returns_fallback(self, tmp_path):
        path = tmp_path / "meminfo"
        path.write_bytes(b"\x00\xff garbage")
        assert _estimator(path, tmp_path).read_memory().is_fallback

    def test_usage_percent(self):
        snap = snapshot_from_counters({"total": 4096 * 1024, "available": 1024 * 1024})
        assert snap.usage_percent == pytest.approx(75.0)
        assert snap.total_gb == pytest.approx(4.0)


class TestOptimize:
    def test_returns_gain_in_available_memory(self, meminfo, tmp_path):
        after = MEMINFO.replace("MemAvailable:    1500000", "MemAvailable:    1602400")

        def sleep(_seconds):
            meminfo.write_text(after)

        freed = _estimator(meminfo, tmp_path, sleep=sleep).optimize()

        assert freed == pytest.approx(100.0)

    def test_falls_back_to_freeable_estimate(self, meminfo, tmp_path):
        after = MEMINFO.replace("MemAvailable:    1500000", "MemAvailable:    1400000")

        def sleep(_seconds):
            meminfo.write_text(after)

        estimator = _estimator(meminfo, tmp_path, sleep=sleep)
        before = estimator.read_memory()
        freed = estimator.optimize()

        assert freed == pytest.approx(before.freeable_mb)
        assert freed > 0

    def test_unchanged_memory_uses_estimate(self, meminfo, tmp_path):
        estimator = _estimator(meminfo, tmp_path)
        assert estimator.optimize() == pytest.approx(900000 / 1024 * 0.4)

    def test_drop_caches_written_when_allowed(self, meminfo, tmp_path):
        control = tmp_path / "drop_caches"
        control.write_text("0\n")
        estimator = MemoryEstimator(meminfo, control, settle_seconds=0, sleep=lambda s: None)

        estimator.optimize()

        assert control.read_text() == "3\n"

    def test_waits_for_settle_time(self, meminfo, tmp_path):
        waits: list[float] = []
        estimator = MemoryEstimator(
            meminfo, tmp_path / "x" / "drop_caches", settle_seconds=0.8, sleep=waits.append
        )
        estimator.optimize()
        assert waits == [0.8]

    def test_unexpected_failure_returns_zero(self, meminfo, tmp_path, monkeypatch):
        estimator = _estimator(meminfo, tmp_path)
        monkeypatch.setattr(estimator, "_release_own_memory", lambda: 1 / 0)
        assert estimator.optimize() == 0.0
