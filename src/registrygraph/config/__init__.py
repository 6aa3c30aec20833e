"""Configuration loading and logging setup."""

from .logging_config import BracketLevelFormatter, SyslogFormatter, init_logging
from .settings import Settings, load_settings, settings_from_dict

__all__ = [
    "BracketLevelFormatter",
    "Settings",
    "SyslogFormatter",
    "init_logging",
    "load_settings",
    "settings_from_dict",
]
