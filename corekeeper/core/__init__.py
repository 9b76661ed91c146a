"""
Core maintenance engine.

The `MaintenanceScheduler` launches the long-lived activities: the
housekeeping loop (which drives the `SubscriptionRefresher`), and the
cadence loops `GeoDataUpdater`, `CoreEngineUpdater` and `GuiUpdater`.
"""

from .scheduler import MaintenanceScheduler
from .shared_config import SharedConfig

__all__ = ["MaintenanceScheduler", "SharedConfig"]
