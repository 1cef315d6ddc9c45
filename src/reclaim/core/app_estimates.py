"""Cosmetic per-app size and data-usage estimates.

Real per-app sizes and traffic need privileges we do not have, so the UI
shows deterministic guesses derived from the package name.  These numbers
are display-only: they are never added to a junk inventory.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")

APP_LIST_TTL = 300.0  # seconds

_SOCIAL = ("facebook", "instagram", "youtube", "tiktok")
_MESSAGING = ("whatsapp", "telegram", "messenger")
_PLATFORM_PREFIXES = ("com.google.", "com.android.")
_SYSTEM_PREFIXES = ("com.android.", "com.google.android.", "android.")


@dataclass(frozen=True, slots=True)
class AppEstimate:
    package: str
    size_mb: float
    data_usage_mb: float
    is_system: bool
    estimated: bool = True


class TimedCache(Generic[T]):
    """Holds one value for *ttl* seconds.

    Owned by the caller and injected where needed; nothing in the scanner
    or the estimators keeps state between calls.
    """

    def __init__(self, ttl: float = APP_LIST_TTL, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._value: T | None = None
        self._stored_at: float | None = None

    @property
    def is_fresh(self) -> bool:
        if self._stored_at is None:
            return False
        return self._clock() - self._stored_at < self.ttl

    def get(self) -> T | None:
        """Return the cached value, or None once it has expired."""
        if not self.is_fresh:
            self.invalidate()
            return None
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._stored_at = self._clock()

    def invalidate(self) -> None:
        self._value = None
        self._stored_at = None


def _stable_hash(text: str) -> int:
    # hash() is salted per process; estimates must not change between runs.
    return int.from_bytes(hashlib.sha256(text.encode()).digest()[:8], "big")


def _spread(package: str, base: float, span: int) -> float:
    return base + float(_stable_hash(package) % span)


def is_system_package(package: str) -> bool:
    return package == "android" or package.startswith(_SYSTEM_PREFIXES)


def estimate_app_size(package: str) -> float:
    """Guess an installed app's size in MB from its package name."""
    if any(k in package for k in _SOCIAL):
        return _spread(package, 150, 250)
    if any(k in package for k in _MESSAGING):
        return _spread(package, 100, 150)
    if package.startswith(_PLATFORM_PREFIXES):
        return _spread(package, 50, 150)
    if "game" in package or "play" in package:
        return _spread(package, 80, 170)
    return _spread(package, 30, 70)


def estimate_data_usage(package: str) -> float:
    """Guess an app's network data usage in MB from its package name."""
    if any(k in package for k in _SOCIAL):
        return _spread(package, 500, 1500)
    if any(k in package for k in _MESSAGING):
        return _spread(package, 200, 800)
    if package.startswith(_PLATFORM_PREFIXES):
        return _spread(package, 50, 200)
    if "browser" in package or "chrome" in package:
        return _spread(package, 100, 400)
    return _spread(package, 10, 90)


class AppEstimator:
    """Produces display estimates for a list of packages, largest first.

    The optional cache holds the last package list with its estimates and
    is reused only for the same list.
    """

    def __init__(
        self, cache: TimedCache[tuple[tuple[str, ...], list[AppEstimate]]] | None = None
    ) -> None:
        self.cache = cache

    def estimates(self, packages: Iterable[str]) -> list[AppEstimate]:
        key = tuple(packages)
        if self.cache is not None:
            cached = self.cache.get()
            if cached is not None and cached[0] == key:
                return cached[1]

        apps = [
            AppEstimate(
                package=package,
                size_mb=estimate_app_size(package),
                data_usage_mb=estimate_data_usage(package),
                is_system=is_system_package(package),
            )
            for package in key
        ]
        apps.sort(key=lambda a: a.size_mb, reverse=True)
        log.debug("Estimated sizes for %d packages", len(apps))

        if self.cache is not None:
            self.cache.set((key, apps))
        return apps
