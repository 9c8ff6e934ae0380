"""In-memory monitor repository."""

from monitorhub.application.services.monitor_service import MonitorService
from monitorhub.domain import MonitorId


class InMemoryMonitorRepository:
    """Stores live monitors keyed by id."""

    def __init__(self) -> None:
        self._monitors: dict[str, MonitorService] = {}

    def get(self, monitor_id: MonitorId) -> MonitorService | None:
        return self._monitors.get(str(monitor_id))

    def get_by_id_str(self, monitor_id: str) -> MonitorService | None:
        return self._monitors.get(monitor_id)

    def add(self, monitor: MonitorService) -> None:
        self._monitors[str(monitor.id)] = monitor

    def remove(self, monitor_id: MonitorId) -> MonitorService | None:
        return self._monitors.pop(str(monitor_id), None)

    def all(self) -> list[MonitorService]:
        return list(self._monitors.values())

    def count(self) -> int:
        return len(self._monitors)
