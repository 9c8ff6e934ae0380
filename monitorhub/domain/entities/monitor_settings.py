"""Monitor setting entity."""

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class MonitorSetting:
    """A single port setting reported by the daemon (e.g. baudrate)."""

    id: str
    label: str = ""
    kind: str = "enum"
    allowed_values: tuple[str, ...] = field(default_factory=tuple)
    selected_value: str = ""

    @property
    def is_enumerable(self) -> bool:
        return bool(self.allowed_values)

    def accepts(self, value: str) -> bool:
        """Check whether ``value`` is a legal selection."""
        return not self.is_enumerable or value in self.allowed_values

    def with_value(self, value: str) -> "MonitorSetting":
        return replace(self, selected_value=value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "kind": self.kind,
            "allowedValues": list(self.allowed_values),
            "selectedValue": self.selected_value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MonitorSetting":
        return cls(
            id=data["id"],
            label=data.get("label", ""),
            kind=data.get("kind", "enum"),
            allowed_values=tuple(data.get("allowedValues", ())),
            selected_value=str(data.get("selectedValue", "")),
        )


SettingsMap = dict[str, MonitorSetting]


def settings_to_dict(settings: SettingsMap) -> dict[str, dict[str, Any]]:
    """Wire shape: ``{id: {id, label, kind, allowedValues, selectedValue}}``."""
    return {setting_id: setting.to_dict() for setting_id, setting in settings.items()}


def selected_values(settings: SettingsMap) -> dict[str, str]:
    """Port configuration to send to the daemon."""
    return {setting_id: setting.selected_value for setting_id, setting in settings.items()}
