"""Cleaning result dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class CleanResult:
    """Result of consuming one junk inventory."""

    freed_bytes: int = 0
    files_removed: int = 0
    errors: list[str] = field(default_factory=list)
    skipped: int = 0
    freed_by_category: dict[str, int] = field(default_factory=dict)
