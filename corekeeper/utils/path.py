"""
Utilities for resolving the application's directory layout.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from corekeeper.models.engine import ENGINE_SPECS, EngineType


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "corekeeper"


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class AppPaths:
    """Directory layout rooted at a single base directory."""

    base_dir: Path

    @classmethod
    def from_base(cls, base_dir: str | Path | None) -> "AppPaths":
        if not base_dir:
            return cls(get_config_dir())
        return cls(Path(base_dir).expanduser())

    @property
    def bin_dir(self) -> Path:
        return self.base_dir / "bin"

    @property
    def bin_config_dir(self) -> Path:
        """Generated engine configs; recompiled on every engine start."""
        return self.base_dir / "binConfigs"

    @property
    def log_dir(self) -> Path:
        return self.base_dir / "guiLogs"

    @property
    def temp_dir(self) -> Path:
        return self.base_dir / "guiTemps"

    @property
    def subscriptions_dir(self) -> Path:
        return self.base_dir / "subscriptions"

    @property
    def geo_dir(self) -> Path:
        """Geo data files live next to the engine directories."""
        return self.bin_dir

    def engine_dir(self, engine: EngineType) -> Path:
        return self.bin_dir / ENGINE_SPECS[engine].install_dir_name

    def ensure(self) -> None:
        for directory in (
            self.bin_dir,
            self.bin_config_dir,
            self.log_dir,
            self.temp_dir,
            self.subscriptions_dir,
        ):
            create_dir(directory)
