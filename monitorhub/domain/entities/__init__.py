"""Domain entities."""

from .line_buffer import DEFAULT_SEPARATOR, MAX_CHARACTERS, Line, LineBuffer
from .monitor_settings import MonitorSetting, SettingsMap, selected_values, settings_to_dict

__all__ = [
    "Line",
    "LineBuffer",
    "MAX_CHARACTERS",
    "DEFAULT_SEPARATOR",
    "MonitorSetting",
    "SettingsMap",
    "selected_values",
    "settings_to_dict",
]
