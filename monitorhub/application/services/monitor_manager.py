"""Monitor manager - registry of live monitors and upload coordination."""

import logging
from collections.abc import Callable

from monitorhub.domain import Board, MonitorId, MonitorRepository, Port, Status

from .monitor_service import MonitorService

logger = logging.getLogger(__name__)

MonitorFactory = Callable[[MonitorId, Board, Port], MonitorService]


class MonitorManager:
    """Creates, finds and disposes monitors, one per board/port/protocol.

    Uploads and monitors both claim the port exclusively: while an upload
    runs, the matching monitor is paused (or its connect aborted) and
    refuses to start.
    """

    def __init__(
        self,
        repository: MonitorRepository,
        monitor_factory: MonitorFactory,
    ) -> None:
        self._repository = repository
        self._monitor_factory = monitor_factory
        self._uploads_in_progress: set[MonitorId] = set()
        self._paused_for_upload: set[MonitorId] = set()

    def get_monitor(self, monitor_id: MonitorId | str) -> MonitorService | None:
        if isinstance(monitor_id, MonitorId):
            return self._repository.get(monitor_id)
        return self._repository.get_by_id_str(monitor_id)

    def monitors(self) -> list[MonitorService]:
        return self._repository.all()

    def monitor_count(self) -> int:
        return self._repository.count()

    async def get_or_create(self, board: Board, port: Port) -> MonitorService:
        """Get the monitor for a board/port, creating it if needed."""
        monitor_id = MonitorId.for_target(board, port)
        monitor = self._repository.get(monitor_id)
        if monitor is not None:
            return monitor

        monitor = self._monitor_factory(monitor_id, board, port)
        monitor.set_upload_in_progress(monitor_id in self._uploads_in_progress)
        monitor.on_dispose(lambda: self._forget(monitor))
        self._repository.add(monitor)
        logger.info("Monitor created monitor_id=%s", monitor_id)

        await monitor.initialize()
        return monitor

    async def start_monitor(self, board: Board, port: Port) -> tuple[MonitorService, Status]:
        """Start (or join) the monitor for a board/port."""
        monitor = await self.get_or_create(board, port)
        status = await monitor.start()
        logger.info("Monitor start monitor_id=%s status=%s", monitor.id, status.value)
        return monitor, status

    async def stop_monitor(self, monitor_id: MonitorId | str) -> bool:
        """Dispose a monitor. Returns False if it does not exist."""
        monitor = self.get_monitor(monitor_id)
        if monitor is None:
            return False
        await monitor.dispose()
        return True

    async def notify_upload_started(self, board: Board, port: Port) -> None:
        """Pause the monitor on this port until the upload finishes."""
        monitor_id = MonitorId.for_target(board, port)
        self._uploads_in_progress.add(monitor_id)

        monitor = self._repository.get(monitor_id)
        if monitor is None:
            return
        monitor.set_upload_in_progress(True)
        if monitor.is_started or monitor.is_connecting:
            self._paused_for_upload.add(monitor_id)
            await monitor.pause()
            logger.info("Monitor paused for upload monitor_id=%s", monitor_id)

    async def notify_upload_finished(self, board: Board, port: Port) -> Status | None:
        """Clear the upload flag and resume a monitor paused by the upload.

        Returns:
            Start status of the resumed monitor, or None if none was paused.
        """
        monitor_id = MonitorId.for_target(board, port)
        self._uploads_in_progress.discard(monitor_id)

        monitor = self._repository.get(monitor_id)
        if monitor is None:
            self._paused_for_upload.discard(monitor_id)
            return None
        monitor.set_upload_in_progress(False)

        if monitor_id not in self._paused_for_upload:
            return None
        self._paused_for_upload.discard(monitor_id)
        status = await monitor.start()
        logger.info("Monitor resumed after upload monitor_id=%s status=%s", monitor_id, status.value)
        return status

    async def stop(self) -> None:
        """Dispose every monitor."""
        for monitor in self._repository.all():
            await monitor.dispose()

    def _forget(self, monitor: MonitorService) -> None:
        if self._repository.get(monitor.id) is monitor:
            self._repository.remove(monitor.id)
        self._paused_for_upload.discard(monitor.id)
        logger.info("Monitor removed monitor_id=%s", monitor.id)
