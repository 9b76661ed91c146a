# tests/conftest.py

import gzip
import io
import tarfile
import zipfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from corekeeper.core.shared_config import SharedConfig
from corekeeper.models.config import AppConfig, GuiSettings, SubscriptionItem
from corekeeper.models.engine import EngineType
from corekeeper.models.results import UpdateResult
from corekeeper.storage.config_manager import ConfigManager
from corekeeper.utils.path import AppPaths


class FakeClock:
    """A settable stand-in for datetime.now."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeUpdateService:
    """Scriptable update service; results may be UpdateResult or an exception to raise."""

    def __init__(self):
        self.core_results: dict[EngineType, object] = {}
        self.subscription_results: dict[str, object] = {}
        self.geo_result: object = UpdateResult(True, "Geo files updated successfully")
        self.gui_result: object = UpdateResult(False, "Already the latest version")
        self.calls: list[tuple] = []
        self.installed: list[tuple[EngineType, str]] = []

    @staticmethod
    def _resolve(result):
        if isinstance(result, Exception):
            raise result
        return result

    async def check_update_core(self, engine, config):
        self.calls.append(("core", engine))
        return self._resolve(
            self.core_results.get(engine, UpdateResult(False, f"{engine.value} is up to date"))
        )

    async def update_geo_files(self, config):
        self.calls.append(("geo",))
        return self._resolve(self.geo_result)

    async def check_update_gui(self, config):
        self.calls.append(("gui",))
        return self._resolve(self.gui_result)

    async def update_subscription(self, config, sub_id):
        self.calls.append(("sub", sub_id))
        return self._resolve(
            self.subscription_results.get(sub_id, UpdateResult(True, f"{sub_id} updated"))
        )

    async def record_installed(self, engine, file_path):
        self.installed.append((engine, file_path))


class ProgressRecorder:
    def __init__(self):
        self.messages: list[tuple[bool, str]] = []

    def __call__(self, success: bool, message: str) -> None:
        self.messages.append((success, message))


def make_tar_gz(path: Path, members: dict[str, bytes]) -> Path:
    with tarfile.open(path, "w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return path


def make_gz(path: Path, data: bytes) -> Path:
    with gzip.open(path, "wb") as f:
        f.write(data)
    return path


def make_zip(path: Path, members: dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 15, 12, 0, 0))


@pytest.fixture
def paths(tmp_path: Path) -> AppPaths:
    app_paths = AppPaths(tmp_path / "home")
    app_paths.ensure()
    return app_paths


@pytest.fixture
def service() -> FakeUpdateService:
    return FakeUpdateService()


@pytest.fixture
def progress() -> ProgressRecorder:
    return ProgressRecorder()


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    return ConfigManager(tmp_path / "config" / "config.ini")


@pytest.fixture
def app_config(paths: AppPaths, clock: FakeClock) -> AppConfig:
    now = int(clock().timestamp())
    return AppConfig(
        gui=GuiSettings(auto_update_interval_hours=3, auto_update_core_interval_hours=2),
        base_dir=str(paths.base_dir),
        subscriptions=[
            SubscriptionItem(
                id="S1", url="https://example.com/s1", auto_update_interval_minutes=60,
                update_time=now - 3700,
            ),
            SubscriptionItem(
                id="S2", url="https://example.com/s2", auto_update_interval_minutes=60,
                update_time=now - 3500,
            ),
            SubscriptionItem(
                id="S3", url="https://example.com/s3", auto_update_interval_minutes=0,
                update_time=0,
            ),
        ],
    )


@pytest.fixture
def shared(app_config: AppConfig, config_manager: ConfigManager) -> SharedConfig:
    config_manager.save_config(app_config)
    return SharedConfig(app_config, config_manager)
