"""
Executable permission handling for installed engine binaries.
"""

import logging
import os
import stat
from pathlib import Path

from corekeeper.models.engine import is_windows

log = logging.getLogger(__name__)


def set_executable_bit(path: Path) -> bool:
    """
    Adds user, group and other execute bits to a file.

    Returns:
        True if the mode was changed, False on Windows or when the file is absent.
    """
    if is_windows() or not path.is_file():
        return False
    mode = path.stat().st_mode
    os.chmod(path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    log.debug(f"Set executable bit on {path}")
    return True
