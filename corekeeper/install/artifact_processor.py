"""
Installs downloaded engine releases into their binary directories.
"""

import asyncio
import logging
from pathlib import Path

from corekeeper.models.engine import ENGINE_SPECS, EngineType, is_windows
from corekeeper.models.results import (
    ArtifactBatch,
    ArtifactOutcome,
    ArtifactStatus,
    ProgressCallback,
)
from corekeeper.utils.path import AppPaths
from corekeeper.utils.progress import report
from corekeeper.utils.structured_logger import MaintenanceLogger

from .archive import decompress_gzip, decompress_tar, extract_zip, flatten_subdirectories
from .locks import InstallLocks
from .permissions import set_executable_bit

log = logging.getLogger(__name__)

# Entries containing this name are left out when unpacking zip releases.
BUNDLED_GEO_MARKER = "geo"


class ArtifactProcessor:
    """
    Extracts each artifact of a batch into its engine's install directory and
    removes the downloaded file. One failing artifact never stops the batch.
    """

    def __init__(
        self,
        paths: AppPaths,
        locks: InstallLocks | None = None,
        events: MaintenanceLogger | None = None,
        windows: bool | None = None,
    ):
        self.paths = paths
        self.locks = locks or InstallLocks()
        self.events = events
        self.windows = is_windows() if windows is None else windows

    async def process(
        self, batch: ArtifactBatch, on_progress: ProgressCallback | None = None
    ) -> list[ArtifactOutcome]:
        """
        Installs every artifact in insertion order and clears the batch.

        Returns:
            One outcome per artifact, in batch order.
        """
        outcomes = []
        try:
            for artifact in batch:
                outcomes.append(await self._process_one(batch, artifact.file_path, on_progress))
        finally:
            batch.clear()
        return outcomes

    async def _process_one(
        self, batch: ArtifactBatch, file_name: str, on_progress: ProgressCallback | None
    ) -> ArtifactOutcome:
        if not file_name or not Path(file_name).is_file():
            return ArtifactOutcome(file_name, ArtifactStatus.SKIPPED, message="missing")

        engine = batch.engine_for(file_name)
        if engine is None:
            return ArtifactOutcome(file_name, ArtifactStatus.SKIPPED, message="untyped")

        spec = ENGINE_SPECS[engine]
        dest_dir = self.paths.engine_dir(engine)
        try:
            log.info(f"Processing downloaded file: {file_name} to {dest_dir}")
            async with self.locks.for_dir(dest_dir):
                await asyncio.to_thread(self._install, Path(file_name), engine, dest_dir)

            message = f"Updated {spec.display_name} successfully"
            report(on_progress, True, message)
            if self.events:
                self.events.artifact_installed(spec.display_name, file_name, str(dest_dir))

            source = Path(file_name)
            if source.exists():
                source.unlink()
            return ArtifactOutcome(file_name, ArtifactStatus.INSTALLED, engine, message)
        except Exception as e:
            log.error(f"Error processing downloaded file {file_name}: {e}")
            if self.events:
                self.events.artifact_failed(spec.display_name, file_name, str(e))
            report(on_progress, False, f"Error updating core: {e}")
            return ArtifactOutcome(file_name, ArtifactStatus.FAILED, engine, str(e))

    def _install(self, source: Path, engine: EngineType, dest_dir: Path) -> None:
        """Blocking extract + chmod; runs in a worker thread."""
        spec = ENGINE_SPECS[engine]
        name = source.name.lower()
        if name.endswith(".tar.gz"):
            decompress_tar(source, dest_dir)
            flatten_subdirectories(dest_dir)
        elif name.endswith(".gz"):
            decompress_gzip(source, dest_dir, spec.executable_filename(self.windows))
        else:
            extract_zip(source, dest_dir, ignored_name=BUNDLED_GEO_MARKER)

        if not self.windows:
            set_executable_bit(dest_dir / spec.executable_filename(False))
