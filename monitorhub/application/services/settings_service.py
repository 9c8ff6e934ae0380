"""Settings service - resolves and persists effective monitor settings."""

import logging
from collections.abc import Mapping
from typing import Any

from monitorhub.domain import (
    MonitorSettingsSource,
    ReconcileResult,
    SettingsMap,
    SettingsReconciler,
    SettingsStore,
    selected_values,
)

logger = logging.getLogger(__name__)


def settings_key(fqbn: str, protocol: str) -> str:
    """Persistence key shared by every port using the same board and protocol."""
    return f"{fqbn}-{protocol}"


class MonitorSettingsService:
    """Fetches daemon defaults, overlays persisted and updated selections."""

    def __init__(
        self,
        source: MonitorSettingsSource,
        store: SettingsStore,
        reconciler: SettingsReconciler | None = None,
    ) -> None:
        self._source = source
        self._store = store
        self._reconciler = reconciler or SettingsReconciler()

    async def effective_settings(self, fqbn: str, protocol: str) -> SettingsMap:
        """Get defaults for the board/protocol merged with persisted values.

        Raises:
            SettingsSourceError: The daemon could not report defaults.
        """
        defaults = await self._source.port_settings(protocol, fqbn)
        key = settings_key(fqbn, protocol)
        settings = self._reconciler.merge(defaults, self._store.load(key))
        self._store.save(key, selected_values(settings))
        return settings

    def apply_update(
        self,
        fqbn: str,
        protocol: str,
        current: SettingsMap,
        update: Mapping[str, Any],
    ) -> ReconcileResult:
        """Apply a caller update and persist the result."""
        result = self._reconciler.apply(current, update)
        if result.ignored:
            logger.warning(
                "Ignored settings fqbn=%s protocol=%s ids=%s",
                fqbn,
                protocol,
                ",".join(result.ignored),
            )
        if fqbn and protocol:
            self._store.save(settings_key(fqbn, protocol), selected_values(result.settings))
        return result
