# tests/test_config_manager.py

import pytest

from corekeeper.exceptions import ConfigurationError
from corekeeper.models.config import AppConfig, SubscriptionItem


def test_missing_file_raises(config_manager):
    with pytest.raises(ConfigurationError, match="corekeeper init"):
        config_manager.load_config()


def test_saved_config_loads_back(config_manager, app_config):
    config_manager.save_config(app_config)

    loaded = config_manager.load_config()

    assert loaded.gui == app_config.gui
    assert loaded.subscriptions == app_config.subscriptions
    assert loaded.base_dir == app_config.base_dir
    assert loaded.config_path == str(config_manager.config_file_path.parent)


def test_new_config_has_defaults(config_manager):
    config_manager.save_new_config()
    loaded = config_manager.load_config()
    assert loaded.gui.auto_update_interval_hours == 10
    assert loaded.gui.auto_update_core_interval_hours == 10
    assert loaded.subscriptions == []


def test_missing_keys_are_migrated(config_manager):
    path = config_manager.config_file_path
    path.parent.mkdir(parents=True)
    path.write_text(
        "[gui]\nauto_update_interval_hours = 4\n"
        "[subscription:home]\nurl = https://example.com/sub?token=%abc\n"
        "auto_update_interval_minutes = 30\n",
        encoding="utf-8",
    )

    loaded = config_manager.load_config()

    assert loaded.gui.auto_update_interval_hours == 4
    assert loaded.gui.auto_update_core_interval_hours == 10
    assert loaded.get_subscription("home").url.endswith("%abc")
    text = path.read_text(encoding="utf-8")
    assert "auto_update_core_interval_hours" in text
    assert "[sources]" in text


@pytest.mark.parametrize(
    "body",
    [
        "[gui]\nauto_update_interval_hours = -1\n",
        "[gui]\nauto_update_interval_hours = soon\n",
        "[gui]\n[subscription:a]\nauto_update_interval_minutes = x\n",
        "[gui]\n[sources]\ngeoip_url = ftp://nope\n",
    ],
)
def test_invalid_values_raise_configuration_error(config_manager, body):
    path = config_manager.config_file_path
    path.parent.mkdir(parents=True)
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        config_manager.load_config()


def test_duplicate_subscription_ids_rejected():
    with pytest.raises(ValueError):
        AppConfig(subscriptions=[SubscriptionItem(id="a"), SubscriptionItem(id="a")])


def test_subscription_id_must_be_section_safe():
    with pytest.raises(ValueError):
        SubscriptionItem(id="bad:id")
