"""
Configuration management for tsam.

This module handles settings defaults and the optional user settings file.
"""

from .settings import Settings
from .defaults import DEFAULT_SETTINGS, DEFAULT_MODULE_PATH, DEFAULT_STATE

__all__ = ["Settings", "DEFAULT_SETTINGS", "DEFAULT_MODULE_PATH", "DEFAULT_STATE"]
