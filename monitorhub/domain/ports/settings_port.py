"""Settings ports - daemon defaults and persisted selections."""

from typing import Protocol

from ..entities.monitor_settings import SettingsMap
from .device_stream_port import DaemonError


class SettingsSourceError(DaemonError):
    """The daemon could not enumerate port settings."""


class MonitorSettingsSource(Protocol):
    """Reports the settings a monitor supports for a protocol and board."""

    async def port_settings(self, protocol: str, fqbn: str) -> SettingsMap:
        """Get default settings.

        Raises:
            SettingsSourceError: The daemon call failed.
        """
        ...


class SettingsStore(Protocol):
    """Persists selected setting values between sessions."""

    def load(self, key: str) -> dict[str, str]:
        """Get persisted ``{setting_id: value}``, empty if none."""
        ...

    def save(self, key: str, values: dict[str, str]) -> None:
        """Persist ``{setting_id: value}`` for ``key``."""
        ...
