"""
Dataclasses for the values passed between maintenance activities.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from .engine import EngineType

# The single observable output channel toward the host: (success, message)
ProgressCallback = Callable[[bool, str], None]


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of one update service call. On a core download, message is the file path."""

    success: bool
    message: str = ""


@dataclass(frozen=True)
class DownloadedArtifact:
    """A downloaded file waiting to be installed into an engine's directory."""

    file_path: str
    engine: EngineType


@dataclass
class ArtifactBatch:
    """
    The artifacts downloaded during one core update cycle.

    A batch is created fresh by each cycle's download phase and handed to the
    artifact processor, which drains it. It is never shared between cycles.
    """

    artifacts: list[DownloadedArtifact] = field(default_factory=list)
    _types: dict[str, EngineType] = field(default_factory=dict, repr=False)

    def add(self, file_path: str, engine: EngineType) -> None:
        self.artifacts.append(DownloadedArtifact(file_path, engine))
        self._types[file_path] = engine

    def engine_for(self, file_path: str) -> EngineType | None:
        return self._types.get(file_path)

    def clear(self) -> None:
        self.artifacts.clear()
        self._types.clear()

    def __len__(self) -> int:
        return len(self.artifacts)

    def __iter__(self):
        return iter(list(self.artifacts))


class ArtifactStatus(Enum):
    INSTALLED = "installed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ArtifactOutcome:
    file_path: str
    status: ArtifactStatus
    engine: EngineType | None = None
    message: str = ""


@dataclass(frozen=True)
class SubscriptionOutcome:
    sub_id: str
    success: bool
    message: str = ""
    refreshed_at: int | None = None
