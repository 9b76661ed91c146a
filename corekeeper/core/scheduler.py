"""
The maintenance scheduler: starts every background activity and runs the
housekeeping loop.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import datetime

from corekeeper.install.artifact_processor import ArtifactProcessor
from corekeeper.install.locks import InstallLocks
from corekeeper.models.results import (
    ArtifactOutcome,
    ProgressCallback,
    SubscriptionOutcome,
)
from corekeeper.services.contracts import UpdateService
from corekeeper.storage.housekeeping import (
    delete_expired_files,
    hours_ago,
    months_ago,
)
from corekeeper.storage.profile_state import ProfileStateStore
from corekeeper.utils.path import AppPaths
from corekeeper.utils.structured_logger import MaintenanceLogger

from .engine_updater import CoreEngineUpdater
from .periodic import BASE_TICK_SECONDS, GeoDataUpdater, GuiUpdater
from .shared_config import SharedConfig
from .subscriptions import PACING_DELAY_SECONDS, SubscriptionRefresher

log = logging.getLogger(__name__)

SAVE_EVERY_TICKS = 20
PURGE_EVERY_TICKS = 60

ACTIVITIES = ("subscriptions", "geo", "core", "gui", "housekeeping")


@dataclass
class HousekeepingReport:
    """What one housekeeping tick did."""

    tick: int
    subscriptions: list[SubscriptionOutcome] = field(default_factory=list)
    saved: bool = False
    purged_files: int | None = None
    geo_fired: bool = False


class MaintenanceScheduler:
    """
    Owns the four long-lived maintenance activities.

    start() launches the housekeeping, geo, core and GUI loops as asyncio
    tasks and returns immediately; stop() cancels them and waits for them to
    finish. Only one set of loops runs per scheduler.
    """

    def __init__(
        self,
        shared: SharedConfig,
        service: UpdateService,
        paths: AppPaths,
        on_progress: ProgressCallback | None = None,
        profile_state: ProfileStateStore | None = None,
        events: MaintenanceLogger | None = None,
        base_tick: float = BASE_TICK_SECONDS,
        pacing_delay: float = PACING_DELAY_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
        windows: bool | None = None,
    ):
        self.shared = shared
        self.service = service
        self.paths = paths
        self.on_progress = on_progress
        self.profile_state = profile_state
        self.events = events
        self.base_tick = base_tick
        self.clock = clock
        self.locks = InstallLocks()

        loop_options = {
            "on_progress": on_progress,
            "base_tick": base_tick,
            "clock": clock,
            "events": events,
        }
        self.refresher = SubscriptionRefresher(
            shared,
            service,
            profile_state=profile_state,
            events=events,
            pacing_delay=pacing_delay,
            clock=clock,
        )
        self.processor = ArtifactProcessor(paths, self.locks, events, windows=windows)
        self.geo_updater = GeoDataUpdater(
            shared, service, paths, self.locks, **loop_options
        )
        self.core_updater = CoreEngineUpdater(
            shared, service, self.processor, **loop_options
        )
        self.gui_updater = GuiUpdater(shared, service, **loop_options)

        self.tick_count = 0
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        """Launches the maintenance loops without waiting on them."""
        if self.running:
            log.debug("Maintenance scheduler already running.")
            return
        log.info("Setup scheduled tasks")
        self._tasks = [
            asyncio.create_task(self._housekeeping_loop(), name="corekeeper-housekeeping"),
            asyncio.create_task(self.geo_updater.run(), name="corekeeper-geo"),
            asyncio.create_task(self.core_updater.run(), name="corekeeper-core"),
            asyncio.create_task(self.gui_updater.run(), name="corekeeper-gui"),
        ]

    async def stop(self) -> None:
        """Cancels every loop and waits for them to exit."""
        for task in self._tasks:
            if not task.done():
                task.cancel()
        for task in self._tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._tasks = []
        log.debug("Maintenance scheduler stopped.")

    async def __aenter__(self) -> "MaintenanceScheduler":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    async def _housekeeping_loop(self) -> None:
        tick = 1
        while True:
            try:
                await asyncio.sleep(self.base_tick)
                await self.housekeeping_tick(tick)
            except asyncio.CancelledError:
                log.debug("Housekeeping loop cancelled.")
                break
            except Exception as e:
                log.warning(f"Error in housekeeping loop: {e}")
            tick += 1

    async def housekeeping_tick(self, tick: int) -> HousekeepingReport:
        """
        One housekeeping pass. Subscriptions are refreshed on every tick, the
        configuration is saved every 20th tick, and expired files are purged
        every 60th tick. Each step is isolated from the failure of another.
        """
        self.tick_count = tick
        report = HousekeepingReport(tick=tick)

        try:
            report.subscriptions = await self.refresher.refresh_due(self.on_progress)
        except Exception as e:
            log.warning(f"Subscription refresh failed: {e}")

        if tick % SAVE_EVERY_TICKS == 0:
            try:
                await self.save_state()
                report.saved = True
            except Exception as e:
                log.warning(f"Saving configuration failed: {e}")

        if tick % PURGE_EVERY_TICKS == 0:
            try:
                report.purged_files = await asyncio.to_thread(
                    self.purge_expired_files, self.clock()
                )
            except Exception as e:
                log.warning(f"Purging expired files failed: {e}")
            try:
                report.geo_fired = await self.geo_updater.run_for_hours(
                    tick // PURGE_EVERY_TICKS
                )
            except Exception as e:
                log.warning(f"Geo data update failed: {e}")

        if self.events:
            self.events.housekeeping_run(
                tick, report.saved, report.purged_files or 0
            )
        return report

    async def save_state(self) -> None:
        await self.shared.save()
        if self.profile_state:
            await self.profile_state.save()

    def purge_expired_files(self, now: datetime) -> int:
        """Deletes stale generated configs, logs and temp files."""
        return (
            delete_expired_files(self.paths.bin_config_dir, hours_ago(now, 1))
            + delete_expired_files(self.paths.log_dir, months_ago(now, 1))
            + delete_expired_files(self.paths.temp_dir, months_ago(now, 1))
        )

    async def run_activity(
        self, activity: str
    ) -> list[SubscriptionOutcome] | list[ArtifactOutcome] | int | None:
        """Runs one activity immediately, ignoring its cadence."""
        config = self.shared.snapshot()
        if activity == "subscriptions":
            return await self.refresher.refresh_due(self.on_progress)
        if activity == "geo":
            await self.geo_updater.fire(config)
            return None
        if activity == "core":
            return await self.core_updater.run_cycle(config)
        if activity == "gui":
            await self.gui_updater.fire(config)
            return None
        if activity == "housekeeping":
            await self.save_state()
            return await asyncio.to_thread(self.purge_expired_files, self.clock())
        raise ValueError(f"Unknown activity: {activity!r}")
