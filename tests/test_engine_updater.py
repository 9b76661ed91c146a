# tests/test_engine_updater.py

import pytest

from conftest import make_tar_gz
from corekeeper.core.engine_updater import CoreEngineUpdater
from corekeeper.install.artifact_processor import ArtifactProcessor
from corekeeper.models.engine import EngineType
from corekeeper.models.results import (
    ArtifactBatch,
    ArtifactStatus,
    DownloadedArtifact,
    UpdateResult,
)


class RecordingProcessor(ArtifactProcessor):
    """Captures the batch contents handed to the install phase."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.seen: list[list[DownloadedArtifact]] = []
        self.batches: list[ArtifactBatch] = []

    async def process(self, batch, on_progress=None):
        self.seen.append(list(batch.artifacts))
        self.batches.append(batch)
        return await super().process(batch, on_progress)


@pytest.fixture
def processor(paths):
    return RecordingProcessor(paths, windows=False)


@pytest.fixture
def updater(shared, service, processor, progress, clock):
    return CoreEngineUpdater(shared, service, processor, on_progress=progress, clock=clock)


class TestCoreCycle:
    async def test_checks_engines_in_fixed_order(self, updater, service):
        await updater.run_cycle(updater.shared.snapshot())
        assert service.calls == [
            ("core", EngineType.XRAY),
            ("core", EngineType.SING_BOX),
            ("core", EngineType.MIHOMO),
        ]

    async def test_partial_success_scenario(self, updater, service, processor, paths, progress):
        archive = make_tar_gz(paths.temp_dir / "a.tar.gz", {"pkg/xray": b"ELF"})
        service.core_results[EngineType.XRAY] = UpdateResult(True, str(archive))
        service.core_results[EngineType.SING_BOX] = ConnectionError("timeout")

        outcomes = await updater.run_cycle(updater.shared.snapshot())

        assert processor.seen == [[DownloadedArtifact(str(archive), EngineType.XRAY)]]
        assert (paths.engine_dir(EngineType.XRAY) / "xray").read_bytes() == b"ELF"
        assert not archive.exists()
        assert [o.status for o in outcomes] == [ArtifactStatus.INSTALLED]
        assert len(processor.batches[0]) == 0
        assert service.installed == [(EngineType.XRAY, str(archive))]
        failures = [m for ok, m in progress.messages if not ok]
        assert any("timeout" in m for m in failures)

    async def test_each_cycle_starts_with_an_empty_batch(self, updater, service, processor, paths):
        first = make_tar_gz(paths.temp_dir / "first.tar.gz", {"pkg/xray": b"1"})
        service.core_results[EngineType.XRAY] = UpdateResult(True, str(first))
        await updater.run_cycle(updater.shared.snapshot())

        service.core_results[EngineType.XRAY] = UpdateResult(False, "up to date")
        await updater.run_cycle(updater.shared.snapshot())

        assert processor.seen[1] == []
        assert all(len(batch) == 0 for batch in processor.batches)

    async def test_failed_install_is_not_recorded(self, updater, service, paths):
        broken = paths.temp_dir / "broken.tar.gz"
        broken.write_bytes(b"nope")
        service.core_results[EngineType.SING_BOX] = UpdateResult(True, str(broken))

        outcomes = await updater.run_cycle(updater.shared.snapshot())

        assert outcomes[0].status is ArtifactStatus.FAILED
        assert service.installed == []


class TestCoreCadence:
    async def test_fires_on_configured_interval(self, updater, service, clock):
        clock.advance(hours=1)
        assert not await updater.tick()
        clock.advance(hours=1)
        assert await updater.tick()
        assert len(service.calls) == 3

    async def test_zero_interval_suppresses_core_updates(self, updater, shared, service, clock):
        await shared.set_intervals(core_hours=0)
        for _ in range(5):
            clock.advance(hours=1)
            assert not await updater.tick()
        assert service.calls == []
