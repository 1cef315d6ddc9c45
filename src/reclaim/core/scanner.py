"""Junk scanning and cleaning over a fixed set of well-known directories."""

from __future__ import annotations

import logging
import os
import shutil
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Callable, Iterator

from reclaim.core.classifier import CACHE_ROOT, TEMP_ROOT, WalkContext, classify, is_junk_extension, looks_temp
from reclaim.models.clean_result import CleanResult
from reclaim.models.junk import JunkCategory, JunkEntry, JunkInventory, bytes_to_gb
from reclaim.utils import APP_NAME, dir_info, xdg_cache_home, xdg_data_home

log = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str], None]  # (phase, status)

DEFAULT_STORAGE_ROOT = Path("/storage/emulated/0")

DOWNLOAD_AGE_DAYS = 30
_SECONDS_PER_DAY = 86400
_MAX_WORKERS = 4

THUMBNAIL_DIRS = ("DCIM/.thumbnails", "Pictures/.thumbnails")
TEMP_DIRS = ("temp", "Download/temp", "Android/media")
DOWNLOAD_DIRS = ("Download", "Downloads")
SOCIAL_MEDIA_DIRS = (
    "WhatsApp/Media/.Statuses",
    "WhatsApp/Media/WhatsApp Animated Gifs",
    "WhatsApp/Media/WhatsApp Video",
    "WhatsApp/Media/WhatsApp Images",
    "WhatsApp/Media/WhatsApp Audio",
    "Telegram/Telegram Images",
    "Telegram/Telegram Video",
    "Telegram/Telegram Audio",
    "Telegram/Telegram Documents",
)


class ScannerState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    CLEANING = "cleaning"


@dataclass(frozen=True)
class ScanRoots:
    """Directories visited by a scan, grouped by the rule applied to them."""

    storage_root: Path
    thumbnails: tuple[Path, ...] = ()
    temp: tuple[Path, ...] = ()
    downloads: tuple[Path, ...] = ()
    social_media: tuple[Path, ...] = ()
    app_temp: Path | None = None
    app_support: Path | None = None

    @classmethod
    def for_storage_root(cls, root: Path | str, app_name: str = APP_NAME) -> ScanRoots:
        root = Path(root)
        return cls(
            storage_root=root,
            thumbnails=tuple(root / d for d in THUMBNAIL_DIRS),
            temp=tuple(root / d for d in TEMP_DIRS),
            downloads=tuple(root / d for d in DOWNLOAD_DIRS),
            social_media=tuple(root / d for d in SOCIAL_MEDIA_DIRS),
            app_temp=xdg_cache_home() / app_name,
            app_support=xdg_data_home() / app_name,
        )

    def downloads_dir(self) -> Path | None:
        """First existing downloads candidate; the others are ignored."""
        for candidate in self.downloads:
            if _is_dir(candidate):
                return candidate
        return None


@dataclass(slots=True)
class _Partial:
    """Entries and skip messages collected by one worker."""

    entries: list[JunkEntry] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False


def _walk(
    root: Path,
    skipped: list[str],
    *,
    recursive: bool = True,
    report_empty_dirs: bool = False,
) -> Iterator[tuple[Path, os.stat_result | None]]:
    """Yield ``(path, stat)`` for regular files below *root*.

    Entries are visited in name order.  Symlinks are neither followed
    nor reported.  With *report_empty_dirs*, empty sub-directories are
    yielded as ``(path, None)``.  Unreadable entries are recorded in
    *skipped* and the walk continues.
    """
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                items = sorted(it, key=lambda e: e.name)
        except OSError as e:
            log.debug("Cannot list %s: %s", current, e)
            skipped.append(f"{current}: {e}")
            continue

        if not items and report_empty_dirs and current != root:
            yield current, None
            continue

        subdirs: list[Path] = []
        for item in items:
            try:
                if item.is_symlink():
                    continue
                if item.is_file(follow_symlinks=False):
                    yield Path(item.path), item.stat(follow_symlinks=False)
                elif recursive and item.is_dir(follow_symlinks=False):
                    subdirs.append(Path(item.path))
            except OSError as e:
                log.debug("Cannot access %s: %s", item.path, e)
                skipped.append(f"{item.path}: {e}")
        stack.extend(reversed(subdirs))


class JunkScanner:
    """Builds a classified junk inventory and deletes it on request.

    One instance owns one inventory.  ``scan()`` replaces it wholesale and
    ``clean()`` consumes it once.  Calls are assumed to be single-flight:
    the scanner does not guard against concurrent ``scan()``/``clean()``.
    """

    def __init__(
        self,
        roots: ScanRoots | None = None,
        *,
        clock: Callable[[], float] = time.time,
        max_workers: int = _MAX_WORKERS,
    ) -> None:
        self.roots = roots or ScanRoots.for_storage_root(DEFAULT_STORAGE_ROOT)
        self._clock = clock
        self._max_workers = max(1, max_workers)
        self._inventory = JunkInventory()
        self._state = ScannerState.IDLE

    # ── scan ─────────────────────────────────────────────────────────────

    def scan(self, on_progress: ProgressCallback | None = None) -> int:
        """Scan all junk roots and return the total junk size in bytes.

        Never deletes anything.  Returns 0 if the scan fails as a whole.
        """
        self._inventory = JunkInventory()
        self._state = ScannerState.SCANNING
        start = time.monotonic()
        try:
            for phase, jobs in self._phases():
                if on_progress:
                    on_progress(phase, "scanning")
                self._run_phase(jobs)
                if on_progress:
                    on_progress(phase, "done")
        except Exception:
            log.exception("Junk scan failed")
            self._inventory = JunkInventory()
            return 0
        finally:
            self._state = ScannerState.IDLE

        log.info(
            "Scan found %d entries totaling %d bytes in %.2fs (%d skipped)",
            self._inventory.count,
            self._inventory.total_bytes,
            time.monotonic() - start,
            len(self._inventory.skipped),
        )
        return self._inventory.total_bytes

    def _phases(self) -> list[tuple[str, list[Callable[[], _Partial]]]]:
        roots = self.roots
        app_dirs: list[Callable[[], _Partial]] = []
        if roots.app_temp is not None:
            app_dirs.append(partial(self._scan_app_directory, roots.app_temp, TEMP_ROOT))
        if roots.app_support is not None:
            app_dirs.append(partial(self._scan_app_directory, roots.app_support, CACHE_ROOT))

        return [
            ("thumbnails", [partial(self._scan_thumbnails, d) for d in roots.thumbnails]),
            ("temp", [partial(self._scan_temp, d) for d in roots.temp]),
            ("downloads", [self._scan_old_downloads]),
            ("social_media", [partial(self._scan_social_media, d) for d in roots.social_media]),
            ("residual_apps", [self._scan_residual_app_folders]),
            ("app_dirs", app_dirs),
        ]

    def _run_phase(self, jobs: list[Callable[[], _Partial]]) -> None:
        """Run one phase's jobs and merge their results in job order.

        Workers never touch the inventory; merging happens here, on the
        calling thread.
        """
        if (os.cpu_count() or 1) > 1 and len(jobs) > 1 and self._max_workers > 1:
            with ThreadPoolExecutor(max_workers=min(self._max_workers, len(jobs))) as executor:
                futures = [executor.submit(job) for job in jobs]
                partials = [future.result() for future in futures]
        else:
            partials = [job() for job in jobs]

        for part in partials:
            self._inventory.extend(part.entries)
            self._inventory.skip(part.skipped)

    def _scan_thumbnails(self, root: Path) -> _Partial:
        """Every regular file under a thumbnail root is cache."""
        result = _Partial()
        if not _is_dir(root):
            return result
        for path, st in _walk(root, result.skipped):
            result.entries.append(JunkEntry.file(path, st.st_size, JunkCategory.CACHE))
        return result

    def _scan_temp(self, root: Path) -> _Partial:
        """Temp-looking files under a temp root are temp."""
        result = _Partial()
        if not _is_dir(root):
            return result
        for path, st in _walk(root, result.skipped):
            if looks_temp(self._relative(path, root)):
                result.entries.append(JunkEntry.file(path, st.st_size, JunkCategory.TEMP))
        return result

    def _scan_old_downloads(self) -> _Partial:
        """Top-level downloads older than DOWNLOAD_AGE_DAYS whole days are big."""
        result = _Partial()
        downloads = self.roots.downloads_dir()
        if downloads is None:
            return result
        now = self._clock()
        for path, st in _walk(downloads, result.skipped, recursive=False):
            age_days = int((now - st.st_mtime) // _SECONDS_PER_DAY)
            if age_days > DOWNLOAD_AGE_DAYS:
                result.entries.append(JunkEntry.file(path, st.st_size, JunkCategory.BIG))
        return result

    def _scan_social_media(self, root: Path) -> _Partial:
        """Messaging-app media is always reclaimable and counted as big."""
        result = _Partial()
        if not _is_dir(root):
            return result
        for path, st in _walk(root, result.skipped):
            result.entries.append(JunkEntry.file(path, st.st_size, JunkCategory.BIG))
        return result

    def _scan_residual_app_folders(self) -> _Partial:
        """Intentionally empty.

        Without elevated privileges, leftovers of uninstalled apps cannot be
        told apart from data of installed ones, so this category is left to
        the OS storage settings.
        """
        return _Partial()

    def _scan_app_directory(self, root: Path, context: WalkContext) -> _Partial:
        """Junk-extension files and empty directories in our own app dirs."""
        result = _Partial()
        if not _is_dir(root):
            return result
        for path, st in _walk(root, result.skipped, report_empty_dirs=True):
            if st is None:
                result.entries.append(JunkEntry.empty_dir(path))
            elif is_junk_extension(path):
                category = classify(path, st.st_size, context)
                result.entries.append(JunkEntry.file(path, st.st_size, category))
        return result

    def _relative(self, path: Path, root: Path) -> Path:
        try:
            return path.relative_to(self.roots.storage_root)
        except ValueError:
            return path.relative_to(root.parent)

    # ── clean ────────────────────────────────────────────────────────────

    def clean(self) -> int:
        """Delete the last scan's inventory and return the bytes freed."""
        return self.clean_detailed().freed_bytes

    def clean_detailed(self) -> CleanResult:
        """Delete the last scan's inventory, reporting per-entry outcomes.

        The inventory is consumed once: afterwards it is empty no matter
        how many deletions failed.
        """
        entries = list(self._inventory.entries)
        result = CleanResult()
        self._state = ScannerState.CLEANING
        try:
            for entry in entries:
                self._remove(entry, result)
        except Exception:
            log.exception("Junk clean failed")
            result = CleanResult(errors=["Cleaning aborted unexpectedly"])
        finally:
            self._inventory = JunkInventory()
            self._state = ScannerState.IDLE

        log.info(
            "Freed %d bytes from %d entries (%d errors, %d already gone)",
            result.freed_bytes,
            len(entries),
            len(result.errors),
            result.skipped,
        )
        return result

    @staticmethod
    def _remove(entry: JunkEntry, result: CleanResult) -> None:
        """Measure and delete one entry, recording the outcome in *result*."""
        path = entry.path
        try:
            if not os.path.lexists(path):
                result.skipped += 1
                return
            if path.is_dir() and not path.is_symlink():
                # Contents may have changed since the scan; measure now.
                size, count = dir_info(path)
                shutil.rmtree(path)
                count = count or 1
            else:
                size, count = path.lstat().st_size, 1
                path.unlink()
        except OSError as e:
            log.debug("Cannot remove %s: %s", path, e)
            result.errors.append(f"{path}: {e}")
            return

        result.freed_bytes += size
        result.files_removed += count
        key = entry.category.value if entry.category else "directories"
        result.freed_by_category[key] = result.freed_by_category.get(key, 0) + size

    # ── accessors ────────────────────────────────────────────────────────

    @property
    def state(self) -> ScannerState:
        return self._state

    @property
    def inventory(self) -> JunkInventory:
        return self._inventory

    @property
    def entries(self) -> tuple[JunkEntry, ...]:
        return tuple(self._inventory.entries)

    @property
    def count(self) -> int:
        return self._inventory.count

    @property
    def skipped_count(self) -> int:
        return len(self._inventory.skipped)

    @property
    def total_bytes(self) -> int:
        return self._inventory.total_bytes

    @property
    def cache_bytes(self) -> int:
        return self._inventory.cache_bytes

    @property
    def temp_bytes(self) -> int:
        return self._inventory.temp_bytes

    @property
    def big_bytes(self) -> int:
        return self._inventory.big_bytes

    @property
    def cache_gb(self) -> float:
        return bytes_to_gb(self._inventory.cache_bytes)

    @property
    def temp_gb(self) -> float:
        return bytes_to_gb(self._inventory.temp_bytes)

    @property
    def big_gb(self) -> float:
        return bytes_to_gb(self._inventory.big_bytes)

    @property
    def categories_valid(self) -> bool:
        """Whether the category totals add up to the grand total."""
        return self._inventory.is_consistent
