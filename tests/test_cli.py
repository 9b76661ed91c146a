# tests/test_cli.py

import pytest
from typer.testing import CliRunner

from corekeeper.cli.app import app
from corekeeper.storage.config_manager import ConfigManager

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.ini"
    ConfigManager(path).save_new_config(str(tmp_path / "home"))
    return path


def test_set_interval_updates_config(config_file):
    result = runner.invoke(app, ["--config", str(config_file), "set-interval", "--geo", "5"])

    assert result.exit_code == 0
    gui = ConfigManager(config_file).load_config().gui
    assert gui.auto_update_interval_hours == 5
    assert gui.auto_update_core_interval_hours == 10


def test_set_interval_without_options_is_a_usage_error(config_file):
    result = runner.invoke(app, ["--config", str(config_file), "set-interval"])

    assert result.exit_code == 2
    assert "Nothing to change" in result.output
    assert "corekeeper init" not in result.output
