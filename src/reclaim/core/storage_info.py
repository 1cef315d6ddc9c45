"""Disk capacity readings and marketed-size estimation."""

from __future__ import annotations

import glob
import logging
import os
import shutil
import subprocess
from pathlib import Path

from reclaim.core.scanner import ScanRoots
from reclaim.core.tiers import DEFAULT_STORAGE_TIER_GB, storage_tier
from reclaim.models.snapshots import StorageSnapshot

log = logging.getLogger(__name__)

_GB = 1024 * 1024 * 1024
_KB = 1024

DEFAULT_STORAGE_PATH = Path("/")

FALLBACK_TOTAL_GB = 64
FALLBACK_USED_GB = 48

APP_CACHE_GLOB = "/data/data/*/cache"
APP_CACHE_USED_RATIO = 0.15


def fallback_storage() -> StorageSnapshot:
    return StorageSnapshot(
        total_bytes=FALLBACK_TOTAL_GB * _GB,
        used_bytes=FALLBACK_USED_GB * _GB,
        free_bytes=(FALLBACK_TOTAL_GB - FALLBACK_USED_GB) * _GB,
        marketed_gb=DEFAULT_STORAGE_TIER_GB,
        is_fallback=True,
    )


def parse_df(output: str) -> tuple[int, int, int] | None:
    """Parse ``df -k`` output into (total, used, available) bytes.

    Only the first data row is considered.  Returns None when it is
    missing or malformed.
    """
    lines = output.splitlines()
    if len(lines) < 2:
        return None
    parts = lines[1].split()
    if len(parts) < 4:
        return None
    try:
        total_kb, used_kb, avail_kb = (int(p) for p in parts[1:4])
    except ValueError:
        return None
    if total_kb <= 0:
        return None
    return total_kb * _KB, used_kb * _KB, avail_kb * _KB


def parse_du(output: str) -> int:
    """Sum the kilobyte column of ``du -s -k`` output, in bytes."""
    total_kb = 0
    for line in output.splitlines():
        parts = line.split()
        if parts and parts[0].isdigit():
            total_kb += int(parts[0])
    return total_kb * _KB


class StorageEstimator:
    """Reads total/used/free space for the filesystem holding *path*."""

    def __init__(self, path: Path | str = DEFAULT_STORAGE_PATH) -> None:
        self.path = Path(path)

    def read_storage(self) -> StorageSnapshot:
        """Return current disk figures.  Never raises."""
        usage = self._from_disk_usage() or self._from_df()
        if usage is None:
            log.warning("Could not determine disk usage for %s, using defaults", self.path)
            return fallback_storage()
        total, used, free = usage
        return StorageSnapshot(
            total_bytes=total,
            used_bytes=used,
            free_bytes=free,
            marketed_gb=storage_tier(total / _GB),
        )

    def downloads_usage(self, roots: ScanRoots) -> StorageSnapshot:
        """Disk snapshot whose ``used`` is the top-level size of Downloads."""
        disk = self.read_storage()
        downloads = roots.downloads_dir()
        used = 0
        if downloads is not None:
            try:
                with os.scandir(downloads) as it:
                    for entry in it:
                        try:
                            if entry.is_file(follow_symlinks=False):
                                used += entry.stat(follow_symlinks=False).st_size
                        except OSError:
                            log.debug("Cannot stat: %s", entry.path)
            except OSError:
                log.debug("Cannot list downloads directory: %s", downloads)
        return StorageSnapshot(
            total_bytes=disk.total_bytes,
            used_bytes=used,
            free_bytes=disk.free_bytes,
            marketed_gb=disk.marketed_gb,
            is_fallback=disk.is_fallback,
        )

    def app_caches_size(self, cache_glob: str = APP_CACHE_GLOB) -> int:
        """Bytes held by per-app cache directories matching *cache_glob*.

        Falls back to APP_CACHE_USED_RATIO of the used space when no
        directory matches or ``du`` fails.
        """
        dirs = sorted(glob.glob(cache_glob))
        if dirs:
            try:
                proc = subprocess.run(
                    ["du", "-s", "-k", *dirs],
                    capture_output=True, text=True, timeout=30,
                )
            except (OSError, subprocess.SubprocessError) as e:
                log.debug("du failed for %s: %s", cache_glob, e)
            else:
                if proc.returncode == 0:
                    return parse_du(proc.stdout)
                log.debug("du exited with %d for %s", proc.returncode, cache_glob)

        estimate = int(self.read_storage().used_bytes * APP_CACHE_USED_RATIO)
        log.info("Estimating app caches as %d bytes", estimate)
        return estimate

    def _from_disk_usage(self) -> tuple[int, int, int] | None:
        try:
            usage = shutil.disk_usage(self.path)
        except OSError as e:
            log.debug("disk_usage failed for %s: %s", self.path, e)
            return None
        if usage.total <= 0:
            return None
        return usage.total, usage.used, usage.free

    def _from_df(self) -> tuple[int, int, int] | None:
        try:
            proc = subprocess.run(
                ["df", "-k", str(self.path)],
                capture_output=True, text=True, timeout=10,
            )
        except (OSError, subprocess.SubprocessError) as e:
            log.debug("df failed for %s: %s", self.path, e)
            return None
        if proc.returncode != 0:
            return None
        return parse_df(proc.stdout)
