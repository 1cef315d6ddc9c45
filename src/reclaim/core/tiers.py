"""Rounding of measured RAM and disk sizes to marketed capacity tiers."""

from __future__ import annotations

import math
from typing import Sequence

RAM_TIERS_MB = (512, 1024, 1536, 2048, 3072, 4096, 6144, 8192, 12288, 16384)
STORAGE_TIERS_GB = (4, 8, 16, 32, 64, 128, 256, 512, 1024)

DEFAULT_RAM_TIER_MB = 2048
DEFAULT_STORAGE_TIER_GB = 64

# Swap at or below this size does not shift the physical RAM guess.
SWAP_THRESHOLD_MB = 100

# Usable capacity is typically 10-20% below the marketed size, so these
# (inclusive lower, exclusive upper, tier) GB bands are checked before
# nearest-tier matching.
STORAGE_BANDS_GB: tuple[tuple[float, float, int], ...] = (
    (6, 12, 8),
    (12, 24, 16),
    (24, 48, 32),
    (48, 90, 64),
    (90, 180, 128),
    (180, 350, 256),
    (350, math.inf, 512),
)


def nearest_tier(measured: float, tiers: Sequence[int], default: int | None = None) -> int:
    """Return the tier closest to *measured*.

    Ties go to the smaller tier.  Non-positive input returns *default*,
    or the smallest tier when no default is given.
    """
    if not tiers:
        raise ValueError("tier table must not be empty")
    if measured <= 0:
        return default if default is not None else min(tiers)
    return min(tiers, key=lambda tier: (abs(tier - measured), tier))


def storage_tier(total_gb: float) -> int:
    """Map usable disk capacity (GB) to the marketed storage size."""
    if total_gb <= 0:
        return DEFAULT_STORAGE_TIER_GB
    for lower, upper, tier in STORAGE_BANDS_GB:
        if lower <= total_gb < upper:
            return tier
    return nearest_tier(total_gb, STORAGE_TIERS_GB, DEFAULT_STORAGE_TIER_GB)


def memory_tier(total_mb: float, swap_mb: float = 0.0) -> int:
    """Guess physical RAM (MB) from the kernel's total and swap sizes.

    Swap (e.g. zram) is usually layered over a standard RAM size, so with
    meaningful swap the smallest tier within ``[total - swap, total]`` is
    preferred.
    """
    if total_mb <= 0:
        return DEFAULT_RAM_TIER_MB
    if swap_mb > SWAP_THRESHOLD_MB:
        for tier in RAM_TIERS_MB:
            if total_mb - swap_mb <= tier <= total_mb:
                return tier
    return nearest_tier(total_mb, RAM_TIERS_MB, DEFAULT_RAM_TIER_MB)
