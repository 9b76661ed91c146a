"""
The update service contract consumed by the maintenance activities.
"""

import logging
from collections.abc import Awaitable
from typing import Protocol

from corekeeper.models.config import AppConfig
from corekeeper.models.engine import EngineType
from corekeeper.models.results import UpdateResult

log = logging.getLogger(__name__)


class UpdateService(Protocol):
    """Network-facing operations; each call reports its own outcome."""

    async def check_update_core(
        self, engine: EngineType, config: AppConfig
    ) -> UpdateResult:
        """Downloads a newer engine release; on success message is the file path."""
        ...

    async def update_geo_files(self, config: AppConfig) -> UpdateResult: ...

    async def check_update_gui(self, config: AppConfig) -> UpdateResult: ...

    async def update_subscription(
        self, config: AppConfig, sub_id: str
    ) -> UpdateResult: ...

    async def record_installed(self, engine: EngineType, file_path: str) -> None:
        """Remembers that the release downloaded to file_path is now installed."""
        ...


async def call_collaborator(description: str, call: Awaitable[UpdateResult]) -> UpdateResult:
    """
    Awaits a service call, converting any raised error into a failed result.
    """
    try:
        result = await call
    except Exception as e:
        log.warning(f"{description} failed: {e}")
        return UpdateResult(False, f"{description} failed: {e}")
    if not isinstance(result, UpdateResult):
        return UpdateResult(False, f"{description} returned no result")
    return result
