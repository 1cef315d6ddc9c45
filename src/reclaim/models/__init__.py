"""Reclaim data models."""

from reclaim.models.junk import EntryKind, JunkCategory, JunkEntry, JunkInventory
from reclaim.models.clean_result import CleanResult
from reclaim.models.snapshots import MemorySnapshot, StorageSnapshot

__all__ = [
    "CleanResult",
    "EntryKind",
    "JunkCategory",
    "JunkEntry",
    "JunkInventory",
    "MemorySnapshot",
    "StorageSnapshot",
]
