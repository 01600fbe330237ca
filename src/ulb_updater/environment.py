"""Read-only view of the host the updater runs on."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Protocol


class EnvironmentProvider(Protocol):
    """Host lookups used to decide what is installed and where."""

    def which(self, name: str) -> Path | None:
        """Return the executable *name* resolves to on PATH, or None."""
        ...

    def home(self) -> Path:
        """Return the current user's home directory."""
        ...

    def is_writable(self, directory: Path) -> bool:
        """Return True if the current user may create files in *directory*."""
        ...


class SystemEnvironment:
    """EnvironmentProvider backed by the real process environment."""

    def which(self, name: str) -> Path | None:
        found = shutil.which(name)
        return Path(found) if found else None

    def home(self) -> Path:
        return Path.home()

    def is_writable(self, directory: Path) -> bool:
        return os.access(directory, os.W_OK)
