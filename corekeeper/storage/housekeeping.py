"""
Purging of expired files from the application's working directories.
"""

import calendar
import logging
from datetime import datetime, timedelta
from pathlib import Path

log = logging.getLogger(__name__)


def months_ago(moment: datetime, months: int) -> datetime:
    """Shifts a datetime back by calendar months, clamping the day to the target month."""
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def hours_ago(moment: datetime, hours: int) -> datetime:
    return moment - timedelta(hours=hours)


def delete_expired_files(directory: Path, older_than: datetime) -> int:
    """
    Removes every file under a directory last modified strictly before a cutoff.

    Files modified at or after the cutoff are kept. Directories are left in place.

    Returns:
        The number of files removed.
    """
    if not directory.is_dir():
        return 0

    cutoff = older_than.timestamp()
    cleaned_count = 0
    for path in directory.rglob("*"):
        try:
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink()
                cleaned_count += 1
        except OSError as e:
            log.warning(f"Failed to remove expired file {path.name}: {e}")
    if cleaned_count > 0:
        log.debug(f"Housekeeping: removed {cleaned_count} expired files from {directory}.")
    return cleaned_count
