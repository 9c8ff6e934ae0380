"""Settings source backed by configuration defaults."""

from collections.abc import Iterable, Mapping

from monitorhub.domain import MonitorSetting, SettingsMap, SettingsSourceError


class StaticSettingsSource:
    """Serves per-protocol default settings from configuration."""

    def __init__(self, defaults: Mapping[str, Iterable[MonitorSetting]]) -> None:
        self._defaults = {
            protocol: {setting.id: setting for setting in settings}
            for protocol, settings in defaults.items()
        }

    async def port_settings(self, protocol: str, fqbn: str) -> SettingsMap:
        if protocol not in self._defaults:
            raise SettingsSourceError(f"No settings for protocol {protocol!r}")
        return dict(self._defaults[protocol])
