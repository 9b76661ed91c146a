"""
Lock-protected owner of the process-wide configuration.
"""

import asyncio
import logging

from corekeeper.models.config import AppConfig, SubscriptionItem
from corekeeper.storage.config_manager import ConfigManager

log = logging.getLogger(__name__)


class SharedConfig:
    """
    Serializes every mutation and save of the configuration through one lock.

    Readers take a deep copy via snapshot(), so an activity never observes a
    half-applied change made by another one.
    """

    def __init__(self, config: AppConfig, config_manager: ConfigManager | None = None):
        self._config = config
        self._config_manager = config_manager
        self._lock = asyncio.Lock()

    def snapshot(self) -> AppConfig:
        return self._config.model_copy(deep=True)

    async def _persist(self) -> None:
        if self._config_manager is None:
            return
        await asyncio.to_thread(
            self._config_manager.save_config, self._config.model_copy(deep=True)
        )

    async def save(self) -> None:
        """Writes the configuration to disk."""
        async with self._lock:
            await self._persist()

    async def mark_subscription_updated(self, sub_id: str, update_time: int) -> bool:
        """
        Sets a subscription's last update time and persists the change.

        Returns:
            False if the subscription no longer exists.
        """
        async with self._lock:
            item = self._config.get_subscription(sub_id)
            if item is None:
                log.debug(f"Subscription '{sub_id}' was removed before it could be marked.")
                return False
            previous = item.update_time
            item.update_time = update_time
            try:
                await self._persist()
            except Exception:
                item.update_time = previous
                raise
            return True

    async def upsert_subscription(self, item: SubscriptionItem) -> None:
        async with self._lock:
            others = [s for s in self._config.subscriptions if s.id != item.id]
            self._config.subscriptions = [*others, item]
            await self._persist()

    async def set_intervals(
        self, geo_hours: int | None = None, core_hours: int | None = None
    ) -> None:
        async with self._lock:
            if geo_hours is not None:
                self._config.gui.auto_update_interval_hours = geo_hours
            if core_hours is not None:
                self._config.gui.auto_update_core_interval_hours = core_hours
            await self._persist()
