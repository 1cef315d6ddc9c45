"""Junk inventory dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

_GB = 1024 * 1024 * 1024


class JunkCategory(str, Enum):
    """Mutually exclusive byte categories tracked by the scanner."""

    CACHE = "cache"
    TEMP = "temp"
    BIG = "big"


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True, slots=True)
class JunkEntry:
    """Single file or directory found during a scan.

    Directories only enter the inventory when they were empty at scan
    time; their size is unknown until they are removed, so ``size_bytes``
    is 0 and ``category`` is None.
    """

    path: Path
    kind: EntryKind
    size_bytes: int = 0
    category: JunkCategory | None = None
    is_empty_dir: bool = False

    @classmethod
    def file(cls, path: Path, size_bytes: int, category: JunkCategory) -> JunkEntry:
        return cls(path=path, kind=EntryKind.FILE, size_bytes=size_bytes, category=category)

    @classmethod
    def empty_dir(cls, path: Path) -> JunkEntry:
        return cls(path=path, kind=EntryKind.DIRECTORY, is_empty_dir=True)


@dataclass(slots=True)
class JunkInventory:
    """Aggregate state of one scan.

    ``add()`` is the only place totals change, so the category totals
    always sum to ``total_bytes``.
    """

    entries: list[JunkEntry] = field(default_factory=list)
    cache_bytes: int = 0
    temp_bytes: int = 0
    big_bytes: int = 0
    total_bytes: int = 0
    skipped: list[str] = field(default_factory=list)

    def add(self, entry: JunkEntry) -> None:
        self.entries.append(entry)
        if entry.category is None:
            return
        match entry.category:
            case JunkCategory.CACHE:
                self.cache_bytes += entry.size_bytes
            case JunkCategory.TEMP:
                self.temp_bytes += entry.size_bytes
            case JunkCategory.BIG:
                self.big_bytes += entry.size_bytes
        self.total_bytes += entry.size_bytes

    def extend(self, entries: list[JunkEntry]) -> None:
        for entry in entries:
            self.add(entry)

    def skip(self, messages: list[str]) -> None:
        """Record paths the walk could not read."""
        self.skipped.extend(messages)

    @property
    def count(self) -> int:
        return len(self.entries)

    @property
    def is_consistent(self) -> bool:
        return self.cache_bytes + self.temp_bytes + self.big_bytes == self.total_bytes


def bytes_to_gb(size_bytes: int) -> float:
    return size_bytes / _GB
