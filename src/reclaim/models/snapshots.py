"""Point-in-time memory and storage readings."""

from __future__ import annotations

from dataclasses import dataclass

_GB = 1024 * 1024 * 1024

# Swap below this size is treated as absent.
SWAP_PRESENT_MB = 100


@dataclass(frozen=True, slots=True)
class MemorySnapshot:
    """One read of the kernel memory counters, in megabytes."""

    total_mb: float
    available_mb: float
    used_mb: float
    freeable_mb: float
    physical_mb: float
    swap_mb: float = 0.0
    is_fallback: bool = False

    @property
    def total_gb(self) -> float:
        return self.total_mb / 1024

    @property
    def available_gb(self) -> float:
        return self.available_mb / 1024

    @property
    def used_gb(self) -> float:
        return self.used_mb / 1024

    @property
    def physical_gb(self) -> float:
        return self.physical_mb / 1024

    @property
    def swap_gb(self) -> float:
        return self.swap_mb / 1024

    @property
    def has_swap(self) -> bool:
        return self.swap_mb > SWAP_PRESENT_MB

    @property
    def usage_percent(self) -> float:
        if self.total_mb == 0:
            return 0.0
        return self.used_mb / self.total_mb * 100


@dataclass(frozen=True, slots=True)
class StorageSnapshot:
    """Disk totals in bytes plus the marketed capacity tier in GB."""

    total_bytes: int
    used_bytes: int
    free_bytes: int
    marketed_gb: int
    is_fallback: bool = False

    @property
    def total_gb(self) -> float:
        return self.total_bytes / _GB

    @property
    def used_gb(self) -> float:
        return self.used_bytes / _GB

    @property
    def free_gb(self) -> float:
        return self.free_bytes / _GB

    @property
    def usage_percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.used_bytes / self.total_bytes * 100
