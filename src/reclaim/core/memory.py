"""Memory readings from /proc/meminfo and best-effort reclaim."""

from __future__ import annotations

import gc
import logging
import os
import time
from pathlib import Path
from typing import Callable

from reclaim.core.tiers import memory_tier
from reclaim.models.snapshots import MemorySnapshot

log = logging.getLogger(__name__)

MEMINFO_PATH = Path("/proc/meminfo")
DROP_CACHES_PATH = Path("/proc/sys/vm/drop_caches")

# Only this share of page cache and buffers is credited as freeable;
# the kernel keeps most of it hot.
FREEABLE_CACHE_RATIO = 0.4

# Returned whenever the counters cannot be read or make no sense.
FALLBACK_TOTAL_MB = 2048.0
FALLBACK_AVAILABLE_MB = 512.0
FALLBACK_FREEABLE_MB = 128.0

DEFAULT_SETTLE_SECONDS = 0.8

_COUNTERS = {
    "MemTotal": "total",
    "MemAvailable": "available",
    "MemFree": "free",
    "Cached": "cached",
    "Buffers": "buffers",
    "SwapTotal": "swap",
}


def fallback_snapshot() -> MemorySnapshot:
    """Conservative snapshot used when real counters are unavailable."""
    return MemorySnapshot(
        total_mb=FALLBACK_TOTAL_MB,
        available_mb=FALLBACK_AVAILABLE_MB,
        used_mb=FALLBACK_TOTAL_MB - FALLBACK_AVAILABLE_MB,
        freeable_mb=FALLBACK_FREEABLE_MB,
        physical_mb=FALLBACK_TOTAL_MB,
        swap_mb=0.0,
        is_fallback=True,
    )


def parse_meminfo(text: str) -> dict[str, int]:
    """Extract the counters we use (in kB) from meminfo-style text.

    Lines look like ``MemTotal:  3891232 kB``.  Unknown keys and values
    that are not integers are ignored.
    """
    counters: dict[str, int] = {}
    for line in text.splitlines():
        key, sep, rest = line.partition(":")
        if not sep or key not in _COUNTERS:
            continue
        parts = rest.split()
        if not parts:
            continue
        try:
            counters[_COUNTERS[key]] = int(parts[0])
        except ValueError:
            log.debug("Unparseable meminfo line: %r", line)
    return counters


def snapshot_from_counters(counters: dict[str, int]) -> MemorySnapshot:
    """Build a snapshot from kB counters, or the fallback if they are unusable."""
    total_kb = counters.get("total", 0)
    available_kb = counters.get("available", 0)
    cached_kb = counters.get("cached", 0)
    buffers_kb = counters.get("buffers", 0)
    if available_kb == 0:
        # Kernels before 3.14 do not report MemAvailable.
        available_kb = counters.get("free", 0) + cached_kb + buffers_kb

    total_mb = total_kb / 1024
    available_mb = available_kb / 1024
    swap_mb = counters.get("swap", 0) / 1024
    physical_mb = memory_tier(total_mb, swap_mb)

    if total_mb <= 0 or physical_mb <= 0:
        return fallback_snapshot()

    return MemorySnapshot(
        total_mb=total_mb,
        available_mb=available_mb,
        used_mb=total_mb - available_mb,
        freeable_mb=(cached_kb + buffers_kb) / 1024 * FREEABLE_CACHE_RATIO,
        physical_mb=float(physical_mb),
        swap_mb=swap_mb,
    )


class MemoryEstimator:
    """Reads memory figures and asks the OS to give some of it back."""

    def __init__(
        self,
        meminfo_path: Path = MEMINFO_PATH,
        drop_caches_path: Path = DROP_CACHES_PATH,
        *,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.meminfo_path = meminfo_path
        self.drop_caches_path = drop_caches_path
        self.settle_seconds = settle_seconds
        self._sleep = sleep

    def read_memory(self) -> MemorySnapshot:
        """Return current memory figures.  Never raises."""
        try:
            text = self.meminfo_path.read_text(encoding="ascii", errors="replace")
        except OSError as e:
            log.debug("Cannot read %s: %s", self.meminfo_path, e)
            return fallback_snapshot()
        try:
            return snapshot_from_counters(parse_meminfo(text))
        except Exception:
            log.exception("Failed to interpret %s", self.meminfo_path)
            return fallback_snapshot()

    def optimize(self) -> float:
        """Try to free memory and return the megabytes freed.

        If available memory did not grow, the pre-optimization freeable
        estimate is returned instead, so the result is never negative.
        """
        try:
            before = self.read_memory()
            self._drop_caches()
            self._release_own_memory()
            self._sleep(self.settle_seconds)
            after = self.read_memory()
        except Exception:
            log.exception("Memory optimization failed")
            return 0.0

        freed = after.available_mb - before.available_mb
        log.info("Available memory changed by %.1f MB", freed)
        return freed if freed > 0 else before.freeable_mb

    def _drop_caches(self) -> None:
        """Flush dirty pages and request a page-cache drop (needs root)."""
        try:
            os.sync()
            self.drop_caches_path.write_text("3\n")
        except OSError as e:
            log.debug("Cache drop refused: %s", e)

    def _release_own_memory(self) -> None:
        collected = gc.collect()
        log.debug("Garbage collector released %d objects", collected)
