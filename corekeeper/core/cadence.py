"""
The hour-granularity cadence check shared by the periodic updaters.
"""

from dataclasses import dataclass
from datetime import datetime

HOURS_PER_DAY = 24


@dataclass
class CadenceState:
    """Per-loop state; owned by exactly one activity."""

    last_run_mark: datetime
    tick_count: int = 0

    def elapsed_hours(self, now: datetime) -> int:
        """
        The hours component of the time since the last run (0-23).

        Whole days are dropped. Intervals of 24 hours or more therefore only
        fire on day boundaries.
        """
        total_hours = int((now - self.last_run_mark).total_seconds() // 3600)
        return total_hours % HOURS_PER_DAY

    def should_fire(self, now: datetime, interval_hours: int) -> bool:
        # Approximate cadence: missed or delayed ticks shift the alignment.
        if interval_hours <= 0:
            return False
        return self.elapsed_hours(now) % interval_hours == 0

    def mark(self, now: datetime) -> None:
        self.last_run_mark = now
