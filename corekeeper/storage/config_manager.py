"""
Manages loading, validation, migration and saving of the INI configuration file.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from corekeeper.exceptions import ConfigurationError
from corekeeper.models.config import (
    AppConfig,
    GuiSettings,
    SourceSettings,
    SubscriptionItem,
)

log = logging.getLogger(__name__)

SUBSCRIPTION_PREFIX = "subscription:"


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self) -> AppConfig:
        """
        Loads configuration from the INI file and validates it.

        Returns:
            A validated AppConfig object.

        Raises:
            ConfigurationError: If the config file is missing, invalid, or validation
            fails.
        """
        if not self.config_file_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'. "
                "Please run 'corekeeper init' first."
            )

        self._parser = configparser.ConfigParser(interpolation=None)
        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e

        if self._migrate_if_needed():
            log.info(
                "[yellow]Configuration file was updated with new default values."
                "[/yellow]"
            )

        try:
            config = AppConfig(**self._get_config_as_dict())
        except (ValidationError, ValueError) as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e
        config.config_path = str(self.config_file_path.parent)
        return config

    def save_config(self, config: AppConfig) -> None:
        """
        Writes the whole configuration, replacing the file atomically.

        Raises:
            ConfigurationError: If the file cannot be written.
        """
        parser = configparser.ConfigParser(interpolation=None)
        parser["gui"] = {
            key: str(value) for key, value in config.gui.model_dump().items()
        }
        parser["paths"] = {"base_dir": config.base_dir}
        parser["sources"] = dict(config.sources.model_dump())
        for item in config.subscriptions:
            parser[f"{SUBSCRIPTION_PREFIX}{item.id}"] = {
                "remarks": item.remarks,
                "url": item.url,
                "auto_update_interval_minutes": str(item.auto_update_interval_minutes),
                "update_time": str(item.update_time),
            }

        tmp_path = self.config_file_path.with_suffix(".ini.tmp")
        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as configfile:
                parser.write(configfile)
            os.replace(tmp_path, self.config_file_path)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e
        self._parser = parser

    def save_new_config(self, base_dir: str = "") -> AppConfig:
        """Creates and saves a configuration file holding only default values."""
        config = AppConfig(base_dir=base_dir)
        self.save_config(config)
        config.config_path = str(self.config_file_path.parent)
        return config

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads all sections of the INI file into a dictionary."""
        gui = self._parser["gui"]
        subscriptions = []
        for section_name in self._parser.sections():
            if not section_name.startswith(SUBSCRIPTION_PREFIX):
                continue
            section = self._parser[section_name]
            try:
                subscriptions.append(
                    {
                        "id": section_name[len(SUBSCRIPTION_PREFIX) :],
                        "remarks": section.get("remarks", ""),
                        "url": section.get("url", ""),
                        "auto_update_interval_minutes": section.getint(
                            "auto_update_interval_minutes", 0
                        ),
                        "update_time": section.getint("update_time", 0),
                    }
                )
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value in section [{section_name}]: {e}"
                ) from e

        try:
            gui_values = {
                key: gui.getint(key) for key in GuiSettings.model_fields if key in gui
            }
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in section [gui]: {e}") from e

        return {
            "gui": gui_values,
            "sources": {
                key: value
                for key, value in self._parser["sources"].items()
                if key in SourceSettings.model_fields
            },
            "base_dir": self._parser["paths"].get("base_dir", ""),
            "subscriptions": [SubscriptionItem(**s) for s in subscriptions],
        }

    def _migrate_if_needed(self) -> bool:
        """Adds missing sections and default values to an existing config file."""
        defaults: dict[str, dict[str, str]] = {
            "gui": {k: str(v) for k, v in GuiSettings().model_dump().items()},
            "paths": {"base_dir": ""},
            "sources": dict(SourceSettings().model_dump()),
        }
        needs_saving = False

        for section_name, values in defaults.items():
            if not self._parser.has_section(section_name):
                self._parser.add_section(section_name)
            section = self._parser[section_name]
            for key, default_value in values.items():
                if key not in section:
                    section[key] = default_value
                    needs_saving = True
                    log.debug(
                        f"Migrating config: added missing key '{section_name}.{key}' "
                        f"with value '{default_value}'."
                    )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
