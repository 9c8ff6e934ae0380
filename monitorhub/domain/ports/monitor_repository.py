"""Monitor repository port."""

from typing import TYPE_CHECKING, Protocol

from ..values import MonitorId

if TYPE_CHECKING:
    from monitorhub.application.services.monitor_service import MonitorService


class MonitorRepository(Protocol):
    """Storage for live monitor sessions."""

    def get(self, monitor_id: MonitorId) -> "MonitorService | None": ...

    def get_by_id_str(self, monitor_id: str) -> "MonitorService | None": ...

    def add(self, monitor: "MonitorService") -> None: ...

    def remove(self, monitor_id: MonitorId) -> "MonitorService | None": ...

    def all(self) -> list["MonitorService"]: ...

    def count(self) -> int: ...
