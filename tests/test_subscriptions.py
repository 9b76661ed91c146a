# tests/test_subscriptions.py

import pytest

from corekeeper.core.subscriptions import SubscriptionRefresher, select_due
from corekeeper.exceptions import ConfigurationError
from corekeeper.models.results import UpdateResult
from corekeeper.storage.profile_state import ProfileStateStore


@pytest.fixture
def refresher(shared, service, clock, paths):
    return SubscriptionRefresher(
        shared,
        service,
        profile_state=ProfileStateStore(paths.base_dir),
        pacing_delay=0,
        clock=clock,
    )


class AdvancingService:
    """Wraps a service so that each subscription update takes ten minutes."""

    def __init__(self, inner, clock):
        self.inner = inner
        self.clock = clock

    async def update_subscription(self, config, sub_id):
        self.clock.advance(minutes=10)
        return await self.inner.update_subscription(config, sub_id)


def test_select_due_scenario(app_config, clock):
    now = int(clock().timestamp())
    assert [item.id for item in select_due(app_config, now)] == ["S1"]


def test_disabled_subscription_is_never_due(app_config, clock):
    disabled = app_config.get_subscription("S3")
    assert not disabled.is_due(int(clock().timestamp()) + 10**9)


def test_due_exactly_at_interval_boundary(app_config, clock):
    item = app_config.get_subscription("S2")
    assert item.is_due(item.update_time + 3600)
    assert not item.is_due(item.update_time + 3599)


class TestRefreshDue:
    async def test_refreshes_only_due_items(self, refresher, service, shared, clock, progress):
        start = int(clock().timestamp())
        outcomes = await refresher.refresh_due(progress)

        assert service.calls == [("sub", "S1")]
        assert [(o.sub_id, o.success, o.refreshed_at) for o in outcomes] == [
            ("S1", True, start)
        ]
        assert shared.snapshot().get_subscription("S1").update_time == start
        assert progress.messages == [(True, "S1 updated")]

    async def test_nothing_due_has_no_side_effects(self, refresher, service, shared, clock, progress):
        await refresher.refresh_due(progress)
        service.calls.clear()
        progress.messages.clear()

        assert await refresher.refresh_due(progress) == []
        assert service.calls == []
        assert progress.messages == []

    async def test_all_items_get_refresh_start_timestamp(self, shared, service, clock, progress):
        await shared.mark_subscription_updated("S2", 0)
        start = int(clock().timestamp())
        refresher = SubscriptionRefresher(
            shared, AdvancingService(service, clock), pacing_delay=0, clock=clock
        )

        outcomes = await refresher.refresh_due(progress)

        assert [o.sub_id for o in outcomes] == ["S1", "S2"]
        config = shared.snapshot()
        assert config.get_subscription("S1").update_time == start
        assert config.get_subscription("S2").update_time == start

    async def test_failure_is_isolated_per_item(self, shared, service, refresher, progress, clock):
        await shared.mark_subscription_updated("S2", 0)
        service.subscription_results["S1"] = RuntimeError("boom")
        start = int(clock().timestamp())

        outcomes = await refresher.refresh_due(progress)

        assert [(o.sub_id, o.success) for o in outcomes] == [("S1", False), ("S2", True)]
        config = shared.snapshot()
        assert config.get_subscription("S1").update_time != start
        assert config.get_subscription("S2").update_time == start
        assert progress.messages[0][0] is False

    async def test_unsuccessful_result_keeps_old_timestamp(self, shared, service, refresher):
        before = shared.snapshot().get_subscription("S1").update_time
        service.subscription_results["S1"] = UpdateResult(False, "HTTP 503")

        outcomes = await refresher.refresh_due()

        assert outcomes[0].success is False
        assert shared.snapshot().get_subscription("S1").update_time == before

    async def test_successful_refresh_is_persisted(self, refresher, config_manager, clock):
        await refresher.refresh_due()
        reloaded = config_manager.load_config()
        assert reloaded.get_subscription("S1").update_time == int(clock().timestamp())

    async def test_outcomes_are_recorded_in_profile_state(self, refresher):
        await refresher.refresh_due()
        entry = refresher.profile_state.get("S1")
        assert entry["success_count"] == 1
        assert entry["last_success"] is True

    async def test_failed_save_rolls_back_timestamp(
        self, refresher, shared, config_manager, monkeypatch
    ):
        before = shared.snapshot().get_subscription("S1").update_time

        def disk_full(config):
            raise ConfigurationError("disk full")

        monkeypatch.setattr(config_manager, "save_config", disk_full)
        outcomes = await refresher.refresh_due()

        assert outcomes[0].success is False
        assert outcomes[0].refreshed_at is None
        assert shared.snapshot().get_subscription("S1").update_time == before
