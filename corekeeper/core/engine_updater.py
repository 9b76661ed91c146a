"""
Downloads and installs updates for every backend engine on its own cadence.
"""

import logging

from corekeeper.install.artifact_processor import ArtifactProcessor
from corekeeper.models.config import AppConfig
from corekeeper.models.engine import ENGINE_SPECS, EngineType
from corekeeper.models.results import ArtifactBatch, ArtifactOutcome, ArtifactStatus
from corekeeper.services.contracts import UpdateService, call_collaborator
from corekeeper.utils.progress import report

from .periodic import CadenceLoop
from .shared_config import SharedConfig

log = logging.getLogger(__name__)


class CoreEngineUpdater(CadenceLoop):
    """
    Checks each engine in a fixed order, collects every successful download
    into one batch, then installs the whole batch in a single pass.
    """

    name = "core"

    def __init__(
        self,
        shared: SharedConfig,
        service: UpdateService,
        processor: ArtifactProcessor,
        **kwargs,
    ):
        super().__init__(shared, service, **kwargs)
        self.processor = processor

    def interval_hours(self, config: AppConfig) -> int:
        return config.gui.auto_update_core_interval_hours

    async def download_all(self, config: AppConfig) -> ArtifactBatch:
        """Runs the download phase and returns a fresh batch of artifacts."""
        batch = ArtifactBatch()
        for engine in EngineType:
            spec = ENGINE_SPECS[engine]
            result = await call_collaborator(
                f"{spec.display_name} update check",
                self.service.check_update_core(engine, config),
            )
            if not result.success:
                report(self.on_progress, False, result.message)
                continue
            if not result.message:
                report(self.on_progress, False, f"{spec.display_name}: no file downloaded")
                continue

            batch.add(result.message, engine)
            log.info(f"Download {spec.display_name} core: {result.message}")
            if self.events:
                self.events.core_downloaded(spec.display_name, result.message)
            report(self.on_progress, True, f"Downloaded {spec.display_name}: {result.message}")
        return batch

    async def run_cycle(self, config: AppConfig) -> list[ArtifactOutcome]:
        """One full download-then-install pass over all engines."""
        batch = await self.download_all(config)
        outcomes = await self.processor.process(batch, self.on_progress)

        for outcome in outcomes:
            if outcome.status is not ArtifactStatus.INSTALLED or outcome.engine is None:
                continue
            try:
                await self.service.record_installed(outcome.engine, outcome.file_path)
            except Exception as e:
                log.warning(f"Could not record installed {outcome.engine.value}: {e}")
        return outcomes

    async def fire(self, config: AppConfig) -> None:
        await self.run_cycle(config)
