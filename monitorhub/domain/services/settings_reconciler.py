"""Settings reconciliation - pure merge rules for monitor settings."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..entities.monitor_settings import MonitorSetting, SettingsMap


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome of applying a settings update."""

    settings: SettingsMap
    applied: tuple[str, ...] = ()
    ignored: tuple[str, ...] = ()


def _extract_value(entry: Any) -> str | None:
    """Accept either a full setting object or a bare value."""
    if isinstance(entry, Mapping):
        value = entry.get("selectedValue")
        return None if value is None else str(value)
    if entry is None:
        return None
    return str(entry)


class SettingsReconciler:
    """Merges daemon defaults, persisted selections and caller updates.

    Keys of the current map are never dropped; only keys present in an
    update are overwritten. Applying the same update twice yields the
    same map.
    """

    def merge(
        self,
        defaults: SettingsMap,
        persisted: Mapping[str, str],
    ) -> SettingsMap:
        """Overlay persisted selections on top of daemon defaults.

        Persisted values for unknown ids, or outside an enumerable
        setting's allowed values, are skipped.
        """
        merged = dict(defaults)
        for setting_id, value in persisted.items():
            setting = merged.get(setting_id)
            if setting is not None and setting.accepts(value):
                merged[setting_id] = setting.with_value(value)
        return merged

    def apply(self, current: SettingsMap, update: Mapping[str, Any]) -> ReconcileResult:
        """Apply a caller update to the current settings.

        Args:
            current: Effective settings.
            update: ``{id: {"selectedValue": value, ...}}`` or ``{id: value}``.

        Returns:
            Result with the new map and the ids that were applied or ignored.
        """
        settings: dict[str, MonitorSetting] = dict(current)
        applied: list[str] = []
        ignored: list[str] = []

        for setting_id, entry in update.items():
            setting = settings.get(setting_id)
            value = _extract_value(entry)
            if setting is None or value is None or not setting.accepts(value):
                ignored.append(setting_id)
                continue
            settings[setting_id] = setting.with_value(value)
            applied.append(setting_id)

        return ReconcileResult(settings=settings, applied=tuple(applied), ignored=tuple(ignored))
