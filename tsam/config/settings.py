"""
Settings management for tsam.

Handles loading and accessing tool configuration.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from .defaults import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


class Settings:
    """
    Tool settings.

    Settings are read from an optional JSON file in the user's config
    directory and merged over DEFAULT_SETTINGS.

    Path:
        Linux/macOS: ~/.config/tsam/settings.json
        Windows: %APPDATA%\\tsam\\settings.json
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize settings.

        Args:
            config_file: Explicit settings file; defaults to the platform location
        """
        self.config_file = config_file or self._get_config_dir() / "settings.json"
        self._settings: Dict[str, Any] = {}
        self.load()

    @staticmethod
    def _get_config_dir() -> Path:
        """
        Get platform-specific configuration directory.

        Returns:
            Path to configuration directory
        """
        if os.name == 'nt':  # Windows
            base = os.environ.get('APPDATA', os.path.expanduser('~'))
        else:  # Linux/macOS
            base = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(base) / 'tsam'

    def load(self):
        """
        Load settings from file.

        If file doesn't exist or is invalid, uses default settings.
        """
        self._settings = copy.deepcopy(DEFAULT_SETTINGS)

        if not self.config_file.exists():
            logger.debug("No settings file found, using defaults")
            return

        try:
            with open(self.config_file, 'r') as f:
                loaded_settings = json.load(f)
            if not isinstance(loaded_settings, dict):
                raise ValueError("settings must be a JSON object")

            self._deep_update(self._settings, loaded_settings)
            logger.debug(f"Loaded settings from {self.config_file}")

        except (ValueError, IOError) as e:
            logger.warning(f"Failed to load settings: {e}, using defaults")
            self._settings = copy.deepcopy(DEFAULT_SETTINGS)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get setting value.

        Supports nested keys with dot notation: "http.timeout"

        Args:
            key: Setting key (use dots for nested values)
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        keys = key.split('.')
        value = self._settings

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    @staticmethod
    def _deep_update(base: dict, updates: dict):
        """
        Recursively update base dict with values from updates dict.

        Args:
            base: Dictionary to update
            updates: Dictionary with new values
        """
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                Settings._deep_update(base[key], value)
            else:
                base[key] = value
