"""
Storage Layer.

This package handles all data persistence: the INI configuration file, the
per-subscription refresh history, and purging of expired working files.
"""

from .config_manager import ConfigManager
from .housekeeping import delete_expired_files
from .profile_state import ProfileStateStore

__all__ = ["ConfigManager", "ProfileStateStore", "delete_expired_files"]
