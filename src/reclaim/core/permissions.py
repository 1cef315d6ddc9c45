"""Storage permission collaborator."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

log = logging.getLogger(__name__)


class PermissionProvider(Protocol):
    """Grants access to the scanned storage.  Prompting is the caller's job."""

    def has_permission(self) -> bool: ...

    def request_permission(self) -> bool: ...


class FilesystemPermission:
    """Permission backed by plain read/traverse access to a directory.

    There is nothing to prompt for on a regular filesystem, so requesting
    permission simply checks again.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def has_permission(self) -> bool:
        return os.access(self.root, os.R_OK | os.X_OK)

    def request_permission(self) -> bool:
        granted = self.has_permission()
        if not granted:
            log.info("No read access to %s", self.root)
        return granted
