"""
Refreshes subscriptions whose auto-update interval has elapsed.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from corekeeper.exceptions import ConfigurationError
from corekeeper.models.config import AppConfig, SubscriptionItem
from corekeeper.models.results import ProgressCallback, SubscriptionOutcome
from corekeeper.services.contracts import UpdateService, call_collaborator
from corekeeper.storage.profile_state import ProfileStateStore
from corekeeper.utils.progress import report
from corekeeper.utils.structured_logger import MaintenanceLogger

from .shared_config import SharedConfig

log = logging.getLogger(__name__)

PACING_DELAY_SECONDS = 1.0


def select_due(config: AppConfig, now: int) -> list[SubscriptionItem]:
    """Subscriptions with auto-update enabled whose interval has fully elapsed."""
    return [item for item in config.subscriptions if item.is_due(now)]


class SubscriptionRefresher:
    """Updates due subscriptions one at a time, pausing between each."""

    def __init__(
        self,
        shared: SharedConfig,
        service: UpdateService,
        profile_state: ProfileStateStore | None = None,
        events: MaintenanceLogger | None = None,
        pacing_delay: float = PACING_DELAY_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.shared = shared
        self.service = service
        self.profile_state = profile_state
        self.events = events
        self.pacing_delay = pacing_delay
        self.clock = clock

    async def refresh_due(
        self, on_progress: ProgressCallback | None = None
    ) -> list[SubscriptionOutcome]:
        """
        Refreshes every due subscription.

        All refreshed items are stamped with the time this pass started, not
        the time each individual item finished.

        Returns:
            One outcome per due subscription; empty when nothing was due.
        """
        now = int(self.clock().timestamp())
        config = self.shared.snapshot()
        due = select_due(config, now)
        if not due:
            return []

        log.info("Execute update subscription")
        outcomes = []
        for item in due:
            outcomes.append(await self._refresh_one(config, item, now, on_progress))
            await asyncio.sleep(self.pacing_delay)
        return outcomes

    async def _refresh_one(
        self,
        config: AppConfig,
        item: SubscriptionItem,
        now: int,
        on_progress: ProgressCallback | None,
    ) -> SubscriptionOutcome:
        result = await call_collaborator(
            f"Subscription {item.id} update",
            self.service.update_subscription(config, item.id),
        )
        report(on_progress, result.success, result.message)

        outcome = SubscriptionOutcome(item.id, result.success, result.message)
        if result.success:
            log.info(f"Update subscription end. {result.message}")
            try:
                if await self.shared.mark_subscription_updated(item.id, now):
                    outcome = SubscriptionOutcome(
                        item.id, True, result.message, refreshed_at=now
                    )
            except ConfigurationError as e:
                log.error(f"Could not persist subscription {item.id}: {e}")
                outcome = SubscriptionOutcome(item.id, False, str(e))

        if self.profile_state:
            await self.profile_state.record(outcome)
        if self.events:
            self.events.subscription_refreshed(item.id, outcome.success, outcome.message)
        return outcome
