"""D-Bus service for GUI communication.

D-Bus methods use PascalCase per D-Bus convention, and type signatures
like "s" and "(ss)" are D-Bus protocol types, not Python syntax.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict

from dbus_next import BusType
from dbus_next.aio import MessageBus
from dbus_next.service import ServiceInterface, method, signal

from reclaim.core.memory import MemoryEstimator
from reclaim.core.scanner import JunkScanner, ScanRoots
from reclaim.core.storage_info import StorageEstimator
from reclaim.core.tracker import Tracker
from reclaim.settings import Settings
from reclaim.storage import load_history

log = logging.getLogger(__name__)

_BUS_NAME = "io.github.reclaim"
_OBJECT_PATH = "/io/github/reclaim"
_INTERFACE = "io.github.reclaim.Manager"


# noinspection PyPep8Naming
class ReclaimDBusService(ServiceInterface):
    """D-Bus service interface for Reclaim."""

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__(_INTERFACE)
        settings = settings or Settings.instance()
        self._scanner = JunkScanner(ScanRoots.for_storage_root(settings.storage_root))
        self._memory = MemoryEstimator(settle_seconds=settings.settle_seconds)
        self._storage = StorageEstimator(settings.storage_path)
        self._tracker = Tracker()

    @method()
    def Scan(self) -> "s":  # type: ignore[override]
        """Scan for junk, returning category totals as JSON."""

        def progress(phase: str, status: str) -> None:
            self.ScanProgress(phase, status)

        total = self._scanner.scan(on_progress=progress)
        return json.dumps(
            {
                "total_bytes": total,
                "cache_bytes": self._scanner.cache_bytes,
                "temp_bytes": self._scanner.temp_bytes,
                "big_bytes": self._scanner.big_bytes,
                "count": self._scanner.count,
                "skipped": self._scanner.skipped_count,
            }
        )

    @method()
    def Clean(self) -> "s":  # type: ignore[override]
        """Delete the inventory of the last scan."""
        result = self._scanner.clean_detailed()
        self._tracker.record(result)
        self._tracker.save_session()
        self.CleanProgress(result.freed_bytes, result.files_removed)
        return json.dumps(asdict(result))

    @method()
    def ReadMemory(self) -> "s":  # type: ignore[override]
        """Current memory snapshot as JSON."""
        return json.dumps(asdict(self._memory.read_memory()))

    @method()
    def Optimize(self) -> "d":  # type: ignore[override]
        """Release memory, returning the megabytes freed."""
        return self._memory.optimize()

    @method()
    def ReadStorage(self) -> "s":  # type: ignore[override]
        """Current storage snapshot as JSON."""
        return json.dumps(asdict(self._storage.read_storage()))

    @method()
    def GetStats(self, period: "s") -> "s":  # type: ignore[override]
        """Get statistics for a time period."""
        return json.dumps(self._tracker.get_stats(period))

    @method()
    def GetHistory(self) -> "s":  # type: ignore[override]
        """Get full session history."""
        return json.dumps(load_history())

    @signal()
    def ScanProgress(self, phase: str, status: str) -> "(ss)":  # type: ignore[override]
        return [phase, status]

    @signal()
    def CleanProgress(self, bytes_freed: int, files_done: int) -> "(tt)":  # type: ignore[override]
        return [bytes_freed, files_done]


async def run_service() -> None:
    """Start the D-Bus service."""
    bus = await MessageBus(bus_type=BusType.SESSION).connect()
    service = ReclaimDBusService()
    bus.export(_OBJECT_PATH, service)
    await bus.request_name(_BUS_NAME)
    log.info("D-Bus service started on %s", _BUS_NAME)
    await bus.wait_for_disconnect()


def start_service() -> None:
    """Entry point to start the D-Bus service."""
    asyncio.run(run_service())
