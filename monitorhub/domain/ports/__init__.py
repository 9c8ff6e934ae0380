"""Domain ports - interfaces for infrastructure to implement."""

from .device_stream_port import DaemonError, DeviceStreamError, DeviceStreamFactory, DeviceStreamPort
from .monitor_repository import MonitorRepository
from .settings_port import MonitorSettingsSource, SettingsSourceError, SettingsStore

__all__ = [
    "DaemonError",
    "DeviceStreamError",
    "DeviceStreamPort",
    "DeviceStreamFactory",
    "MonitorRepository",
    "MonitorSettingsSource",
    "SettingsSourceError",
    "SettingsStore",
]
