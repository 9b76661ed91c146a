"""
Cadence-driven maintenance loops for geo data and GUI update checks.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime

from corekeeper.install.locks import InstallLocks
from corekeeper.models.config import AppConfig
from corekeeper.models.results import ProgressCallback
from corekeeper.services.contracts import UpdateService, call_collaborator
from corekeeper.utils.path import AppPaths
from corekeeper.utils.progress import report
from corekeeper.utils.structured_logger import MaintenanceLogger

from .cadence import CadenceState
from .shared_config import SharedConfig

log = logging.getLogger(__name__)

BASE_TICK_SECONDS = 3600


class CadenceLoop(ABC):
    """
    Wakes every base tick and fires when the hours elapsed since the last run
    are a multiple of the configured interval. An interval of 0 disables it.
    """

    name = "cadence"

    def __init__(
        self,
        shared: SharedConfig,
        service: UpdateService,
        on_progress: ProgressCallback | None = None,
        base_tick: float = BASE_TICK_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
        events: MaintenanceLogger | None = None,
    ):
        self.shared = shared
        self.service = service
        self.on_progress = on_progress
        self.base_tick = base_tick
        self.clock = clock
        self.events = events
        self.state = CadenceState(last_run_mark=clock())

    @abstractmethod
    def interval_hours(self, config: AppConfig) -> int:
        ...

    @abstractmethod
    async def fire(self, config: AppConfig) -> None:
        ...

    async def tick(self) -> bool:
        """Runs one cadence check. Returns True if the update fired."""
        now = self.clock()
        self.state.tick_count += 1
        config = self.shared.snapshot()
        interval = self.interval_hours(config)
        if not self.state.should_fire(now, interval):
            return False

        if self.events:
            self.events.activity_fired(self.name, self.state.elapsed_hours(now), interval)
        await self.fire(config)
        self.state.mark(now)
        return True

    async def run(self) -> None:
        """Loops until cancelled; a failing tick never ends the loop."""
        log.info(f"Starting {self.name} update loop")
        if self.events:
            self.events.activity_started(self.name)
        self.state = CadenceState(last_run_mark=self.clock())
        while True:
            try:
                await asyncio.sleep(self.base_tick)
                await self.tick()
            except asyncio.CancelledError:
                log.debug(f"{self.name} update loop cancelled.")
                break
            except Exception as e:
                log.warning(f"Error in {self.name} update loop: {e}")


class GeoDataUpdater(CadenceLoop):
    """Refreshes geoip/geosite data files."""

    name = "geo"

    def __init__(
        self,
        shared: SharedConfig,
        service: UpdateService,
        paths: AppPaths,
        locks: InstallLocks,
        **kwargs,
    ):
        super().__init__(shared, service, **kwargs)
        self.paths = paths
        self.locks = locks

    def interval_hours(self, config: AppConfig) -> int:
        return config.gui.auto_update_interval_hours

    async def fire(self, config: AppConfig) -> None:
        async with self.locks.for_dir(self.paths.geo_dir):
            result = await call_collaborator(
                "Geo files update", self.service.update_geo_files(config)
            )
        report(self.on_progress, result.success, result.message)

    async def run_for_hours(self, hours: int) -> bool:
        """
        Fires once if the given hour count is a multiple of the geo interval.
        Used by the housekeeping loop, which counts hours itself.
        """
        config = self.shared.snapshot()
        interval = self.interval_hours(config)
        if interval <= 0 or hours % interval != 0:
            return False
        await self.fire(config)
        return True


class GuiUpdater(CadenceLoop):
    """Checks for a newer release of the application itself."""

    name = "gui"

    def interval_hours(self, config: AppConfig) -> int:
        # Shares the core cadence setting; there is no separate GUI interval.
        return config.gui.auto_update_core_interval_hours

    async def fire(self, config: AppConfig) -> None:
        result = await call_collaborator(
            "GUI update check", self.service.check_update_gui(config)
        )
        report(self.on_progress, result.success, result.message)
