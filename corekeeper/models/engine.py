"""
The closed set of backend engines and their install layout.
"""

import platform
import re
from dataclasses import dataclass, field
from enum import Enum

from corekeeper.exceptions import UnsupportedPlatformError


class EngineType(Enum):
    """Interchangeable backend binary families, in update order."""

    XRAY = "xray"
    SING_BOX = "sing_box"
    MIHOMO = "mihomo"


@dataclass(frozen=True)
class EngineSpec:
    """Install directory, executable name and release asset patterns of an engine."""

    engine: EngineType
    display_name: str
    install_dir_name: str
    executable_name: str
    # (os, arch) -> regex matched against release asset names
    asset_patterns: dict[tuple[str, str], str] = field(default_factory=dict)

    def executable_filename(self, windows: bool | None = None) -> str:
        if windows is None:
            windows = is_windows()
        return f"{self.executable_name}.exe" if windows else self.executable_name

    def asset_pattern(self, os_name: str, arch: str) -> re.Pattern[str]:
        pattern = self.asset_patterns.get((os_name, arch))
        if pattern is None:
            raise UnsupportedPlatformError(
                f"{self.display_name} has no release for {os_name}/{arch}."
            )
        return re.compile(pattern)


ENGINE_SPECS: dict[EngineType, EngineSpec] = {
    EngineType.XRAY: EngineSpec(
        engine=EngineType.XRAY,
        display_name="Xray",
        install_dir_name="xray",
        executable_name="xray",
        asset_patterns={
            ("windows", "amd64"): r"^Xray-windows-64\.zip$",
            ("windows", "arm64"): r"^Xray-windows-arm64-v8a\.zip$",
            ("linux", "amd64"): r"^Xray-linux-64\.zip$",
            ("linux", "arm64"): r"^Xray-linux-arm64-v8a\.zip$",
            ("macos", "amd64"): r"^Xray-macos-64\.zip$",
            ("macos", "arm64"): r"^Xray-macos-arm64-v8a\.zip$",
        },
    ),
    EngineType.SING_BOX: EngineSpec(
        engine=EngineType.SING_BOX,
        display_name="sing-box",
        install_dir_name="sing_box",
        executable_name="sing-box",
        asset_patterns={
            ("windows", "amd64"): r"^sing-box-[\d.]+-windows-amd64\.zip$",
            ("windows", "arm64"): r"^sing-box-[\d.]+-windows-arm64\.zip$",
            ("linux", "amd64"): r"^sing-box-[\d.]+-linux-amd64\.tar\.gz$",
            ("linux", "arm64"): r"^sing-box-[\d.]+-linux-arm64\.tar\.gz$",
            ("macos", "amd64"): r"^sing-box-[\d.]+-darwin-amd64\.tar\.gz$",
            ("macos", "arm64"): r"^sing-box-[\d.]+-darwin-arm64\.tar\.gz$",
        },
    ),
    EngineType.MIHOMO: EngineSpec(
        engine=EngineType.MIHOMO,
        display_name="mihomo",
        install_dir_name="mihomo",
        executable_name="mihomo",
        asset_patterns={
            ("windows", "amd64"): r"^mihomo-windows-amd64-v[\d.]+\.zip$",
            ("windows", "arm64"): r"^mihomo-windows-arm64-v[\d.]+\.zip$",
            ("linux", "amd64"): r"^mihomo-linux-amd64-v[\d.]+\.gz$",
            ("linux", "arm64"): r"^mihomo-linux-arm64-v[\d.]+\.gz$",
            ("macos", "amd64"): r"^mihomo-darwin-amd64-v[\d.]+\.gz$",
            ("macos", "arm64"): r"^mihomo-darwin-arm64-v[\d.]+\.gz$",
        },
    ),
}


def is_windows() -> bool:
    return platform.system() == "Windows"


def current_platform() -> tuple[str, str]:
    """Returns the (os, arch) key used by the asset pattern tables."""
    system = platform.system().lower()
    os_name = {"darwin": "macos"}.get(system, system)
    machine = platform.machine().lower()
    arch = "arm64" if machine in ("arm64", "aarch64") else "amd64"
    return os_name, arch
