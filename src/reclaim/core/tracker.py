"""Tracks freed space across sessions."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from reclaim.models.clean_result import CleanResult
from reclaim.storage import append_session, load_history

log = logging.getLogger(__name__)


class Tracker:
    """Tracks and persists cleaning statistics."""

    def __init__(self) -> None:
        self._session_results: list[CleanResult] = []

    @property
    def session_bytes_freed(self) -> int:
        """Total bytes freed in the current session."""
        return sum(r.freed_bytes for r in self._session_results)

    @property
    def session_files_removed(self) -> int:
        """Total files removed in the current session."""
        return sum(r.files_removed for r in self._session_results)

    def record(self, result: CleanResult) -> None:
        """Record one cleaning result for the current session."""
        self._session_results.append(result)

    def get_last_clean_time(self) -> str | None:
        """Return ISO timestamp of the most recent cleaning session, or None."""
        sessions = load_history().get("sessions", [])
        return sessions[-1]["timestamp"] if sessions else None

    def save_session(self) -> None:
        """Persist the current session to history."""
        if not self._session_results:
            return

        session_entry = self._build_session_entry()
        append_session(session_entry)

        log.info(
            "Saved session: %d bytes freed across %d categories",
            _session_bytes(session_entry),
            len(session_entry["details"]),
        )
        self._session_results.clear()

    def get_stats(self, period: str = "all") -> dict[str, Any]:
        """Get aggregated statistics for a time period.

        Args:
            period: One of 'today', 'week', 'month', 'all'.
        """
        all_sessions = load_history().get("sessions", [])

        match period:
            case "today":
                cutoff = _start_of_today()
            case "week":
                cutoff = _start_of_today() - timedelta(days=7)
            case "month":
                cutoff = _start_of_today() - timedelta(days=30)
            case _:
                cutoff = None

        if cutoff is not None:
            sessions = [
                s for s in all_sessions
                if datetime.fromisoformat(s["timestamp"]) >= cutoff
            ]
        else:
            sessions = all_sessions

        return {
            "period": period,
            "bytes_freed": sum(_session_bytes(s) for s in sessions),
            "files_removed": sum(s.get("files_removed", 0) for s in sessions),
            "session_count": len(sessions),
            "lifetime_bytes_freed": sum(_session_bytes(s) for s in all_sessions),
            "per_category": self._aggregate_category_stats(sessions),
        }

    def _build_session_entry(self) -> dict[str, Any]:
        """Build a session record from current results."""
        per_category: dict[str, int] = {}
        for result in self._session_results:
            for category, freed in result.freed_by_category.items():
                per_category[category] = per_category.get(category, 0) + freed
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "files_removed": self.session_files_removed,
            "errors": sum(len(r.errors) for r in self._session_results),
            "details": [
                {"category": category, "bytes_freed": freed}
                for category, freed in sorted(per_category.items())
            ],
        }

    @staticmethod
    def _aggregate_category_stats(sessions: list[dict[str, Any]]) -> dict[str, int]:
        """Sum bytes freed per category across sessions."""
        totals: dict[str, int] = {}
        for session in sessions:
            for detail in session.get("details", []):
                category = detail["category"]
                totals[category] = totals.get(category, 0) + detail.get("bytes_freed", 0)
        return totals


def _session_bytes(session: dict[str, Any]) -> int:
    """Derive total bytes freed from a session's details."""
    return sum(d.get("bytes_freed", 0) for d in session.get("details", []))


def _start_of_today() -> datetime:
    """Return the start of the current UTC day."""
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)
