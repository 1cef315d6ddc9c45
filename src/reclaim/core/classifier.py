"""Assigns scanned entries to junk categories."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath

from reclaim.models.junk import JunkCategory

BIG_FILE_THRESHOLD = 10 * 1024 * 1024  # 10 MB

JUNK_EXTENSIONS = frozenset({
    ".tmp",
    ".log",
    ".bak",
    ".cache",
    ".temp",
    ".old",
    ".dmp",
    ".crdownload",
    ".part",
    ".download",
})

_TEMP_SUFFIXES = (".tmp", ".temp")
_CACHE_SUFFIXES = (".cache",)


@dataclass(frozen=True, slots=True)
class WalkContext:
    """Role of the directory a walk is rooted under."""

    temp_root: bool = False
    cache_root: bool = False


GENERIC = WalkContext()
TEMP_ROOT = WalkContext(temp_root=True)
CACHE_ROOT = WalkContext(cache_root=True)


def _name(path: PurePath | str) -> str:
    return PurePath(path).name.lower()


def has_temp_name(path: PurePath | str) -> bool:
    name = _name(path)
    return "temp" in name or name.endswith(_TEMP_SUFFIXES)


def has_cache_name(path: PurePath | str) -> bool:
    name = _name(path)
    return "cache" in name or name.endswith(_CACHE_SUFFIXES)


def looks_temp(relative: PurePath | str) -> bool:
    """Temp heuristic for walks under the well-known temp roots.

    *relative* is the path below the storage root, so any directory
    component named like ``temp`` marks everything beneath it.
    """
    relative = PurePath(relative)
    if any("temp" in part.lower() for part in relative.parts):
        return True
    return relative.name.lower().endswith(_TEMP_SUFFIXES)


def is_junk_extension(path: PurePath | str) -> bool:
    """Whether the file name ends with a known junk extension."""
    name = _name(path)
    return any(name.endswith(ext) for ext in JUNK_EXTENSIONS)


def classify(
    path: PurePath | str,
    size_bytes: int,
    context: WalkContext = GENERIC,
    *,
    big_threshold: int = BIG_FILE_THRESHOLD,
) -> JunkCategory:
    """Return the single category for a file; the first matching rule wins."""
    if context.temp_root or has_temp_name(path):
        return JunkCategory.TEMP
    if context.cache_root or has_cache_name(path):
        return JunkCategory.CACHE
    if size_bytes > big_threshold:
        return JunkCategory.BIG
    return JunkCategory.TEMP
