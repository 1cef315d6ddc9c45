"""JSON file storage for cleaning history.

The file holds ``{"sessions": [...]}``.  Each session records one clean::

    {"timestamp": "<UTC ISO-8601>", "files_removed": 3, "errors": 0,
     "details": [{"category": "cache", "bytes_freed": 1024}, ...]}

``details`` carries one row per junk category (plus ``directories`` for
removed empty directories); per-category statistics are summed from it.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

from reclaim.utils import APP_NAME, xdg_data_home

log = logging.getLogger(__name__)

_DATA_DIR = xdg_data_home() / APP_NAME

HISTORY_FILE = _DATA_DIR / "history.json"


def _empty() -> dict[str, Any]:
    return {"sessions": []}


def is_valid_session(session: Any) -> bool:
    """Check one session against the history schema."""
    if not isinstance(session, dict):
        return False
    try:
        datetime.fromisoformat(session["timestamp"])
    except (KeyError, TypeError, ValueError):
        return False
    details = session.get("details")
    if not isinstance(details, list):
        return False
    return all(
        isinstance(d, dict)
        and isinstance(d.get("category"), str)
        and isinstance(d.get("bytes_freed"), int)
        for d in details
    )


def load_history() -> dict[str, Any]:
    """Load the history file, dropping sessions that do not fit the schema."""
    if not HISTORY_FILE.exists():
        return _empty()
    try:
        with open(HISTORY_FILE) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        log.exception("Failed to load history file: %s", HISTORY_FILE)
        return _empty()
    if not isinstance(data, dict) or not isinstance(data.get("sessions"), list):
        log.warning("Ignoring malformed history file: %s", HISTORY_FILE)
        return _empty()

    sessions = [s for s in data["sessions"] if is_valid_session(s)]
    dropped = len(data["sessions"]) - len(sessions)
    if dropped:
        log.warning("Ignoring %d malformed session(s) in %s", dropped, HISTORY_FILE)
    data["sessions"] = sessions
    return data


def save_history(data: dict[str, Any]) -> None:
    """Write the history data to disk."""
    try:
        _DATA_DIR.mkdir(parents=True, exist_ok=True)
        with open(HISTORY_FILE, "w") as f:
            json.dump(data, f, indent=2)
    except OSError:
        log.exception("Failed to save history file: %s", HISTORY_FILE)


def append_session(session: dict[str, Any]) -> None:
    """Add one session to the history file."""
    if not is_valid_session(session):
        raise ValueError(f"Malformed history session: {session!r}")
    history = load_history()
    history["sessions"].append(session)
    save_history(history)
