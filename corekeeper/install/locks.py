"""
Per-directory locks that serialize writers of an install directory.
"""

import asyncio
from pathlib import Path


class InstallLocks:
    """Hands out one asyncio.Lock per resolved install directory."""

    def __init__(self):
        self._locks: dict[Path, asyncio.Lock] = {}

    def for_dir(self, directory: Path) -> asyncio.Lock:
        key = directory.resolve()
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock
