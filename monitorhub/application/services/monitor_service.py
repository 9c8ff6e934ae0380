"""Monitor service - owns one device connection and fans it out to observers."""

import asyncio
import codecs
import logging
from collections.abc import Callable, Mapping
from contextlib import suppress
from typing import Any

from monitorhub.domain import (
    Board,
    DaemonError,
    DeviceStreamError,
    DeviceStreamFactory,
    DeviceStreamPort,
    MonitorId,
    MonitorRequest,
    MonitorResponse,
    MonitorState,
    ObserverCommand,
    Port,
    ReconfigureSettings,
    RetryPolicy,
    SettingsMap,
    Status,
    Transmit,
    encode_settings_changed,
    selected_values,
    settings_to_dict,
    split_lines,
)

from .message_batcher import FLUSH_INTERVAL, MessageBatcher
from .observer_fanout import ObserverFanout, Subscription
from .settings_service import MonitorSettingsService

logger = logging.getLogger(__name__)


class MonitorService:
    """Session manager for one board/port/protocol triple.

    Owns the device stream lifecycle (start/pause/stop/send), the retry
    loop, the message batcher and the observer fanout. All state is
    mutated from callbacks on the owning event loop only.
    """

    def __init__(
        self,
        monitor_id: MonitorId,
        board: Board,
        port: Port,
        *,
        stream_factory: DeviceStreamFactory,
        settings_service: MonitorSettingsService,
        fanout: ObserverFanout | None = None,
        retry_policy: RetryPolicy | None = None,
        flush_interval: float = FLUSH_INTERVAL,
    ) -> None:
        self.id = monitor_id
        self.board = board
        self.port = port
        self._stream_factory = stream_factory
        self._settings_service = settings_service
        self._fanout = fanout or ObserverFanout(monitor_id)
        self._retry_policy = retry_policy or RetryPolicy()
        self._batcher = MessageBatcher(self._fanout.broadcast, flush_interval)

        self._state = MonitorState.IDLE
        self._stream: DeviceStreamPort | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._connecting: asyncio.Future[Status] | None = None
        self._abort_connect = asyncio.Event()
        self._pausing = False
        self._upload_in_progress = False

        self._pluggable_settings: SettingsMap = {}
        self._ui_settings: dict[str, Any] = {"connected": False}
        self._settings_generation = 0

        self._command_subscription: Subscription | None = None
        self._clients_subscription = self._fanout.on_clients_changed(self._on_clients_changed)
        self._disposed = False
        self._dispose_callbacks: list[Callable[[], None]] = []

    # ---- Properties ----

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def is_started(self) -> bool:
        """True while a device stream is open."""
        return self._stream is not None

    @property
    def is_connecting(self) -> bool:
        """True while the retry loop is running."""
        return self._connecting is not None

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def upload_in_progress(self) -> bool:
        return self._upload_in_progress

    @property
    def fanout(self) -> ObserverFanout:
        return self._fanout

    @property
    def batcher(self) -> MessageBatcher:
        return self._batcher

    @property
    def observer_count(self) -> int:
        return self._fanout.observer_count

    @property
    def pluggable_settings(self) -> SettingsMap:
        return dict(self._pluggable_settings)

    def settings_snapshot(self) -> dict[str, Any]:
        """Full settings as sent to observers."""
        return {
            "monitorUISettings": dict(self._ui_settings),
            "pluggableMonitorSettings": settings_to_dict(self._pluggable_settings),
        }

    def set_upload_in_progress(self, flag: bool) -> None:
        self._upload_in_progress = flag

    def on_dispose(self, callback: Callable[[], None]) -> None:
        """Register a one-shot callback fired when the monitor is disposed."""
        if self._disposed:
            callback()
            return
        self._dispose_callbacks.append(callback)

    # ---- Settings ----

    async def initialize(self) -> None:
        """Fetch effective settings once, ahead of the first start."""
        try:
            await self._refresh_settings()
        except DaemonError as e:
            logger.warning("Initial settings fetch failed monitor_id=%s error=%s", self.id, e)

    async def _refresh_settings(self) -> None:
        fqbn, protocol = self.board.fqbn, self.port.protocol
        if not fqbn or not protocol:
            return

        self._settings_generation += 1
        generation = self._settings_generation
        settings = await self._settings_service.effective_settings(fqbn, protocol)

        # Last write wins: a newer fetch or update supersedes this one,
        # but a stale fetch still fills a map nothing has written yet
        if generation != self._settings_generation and self._pluggable_settings:
            logger.debug("Discarded stale settings fetch monitor_id=%s", self.id)
            return
        self._pluggable_settings = settings

    async def change_settings(self, update: Mapping[str, Any]) -> Status:
        """Reconcile a settings update and apply it to the live stream.

        Observers are always notified. Without an open stream the new
        values become the defaults for the next connection.

        Args:
            update: ``{"pluggableMonitorSettings": {...}, "monitorUISettings": {...}}``.
        """
        pluggable_update = update.get("pluggableMonitorSettings") or {}
        ui_update = update.get("monitorUISettings") or {}

        if not self._pluggable_settings:
            try:
                await self._refresh_settings()
            except DaemonError as e:
                logger.warning("Settings fetch failed monitor_id=%s error=%s", self.id, e)

        self._settings_generation += 1
        result = self._settings_service.apply_update(
            self.board.fqbn or "",
            self.port.protocol or "",
            self._pluggable_settings,
            pluggable_update,
        )
        self._pluggable_settings = result.settings

        stream = self._stream
        connected = stream is not None and self._state == MonitorState.CONNECTED
        self._update_clients_settings(
            ui={**ui_update, "connected": connected, "serialPort": self.port.address},
            pluggable=result.settings,
        )

        if not connected:
            return Status.NOT_CONNECTED

        try:
            await stream.write(MonitorRequest.configure(selected_values(result.settings)))
        except DeviceStreamError as e:
            logger.error("Settings write failed monitor_id=%s error=%s", self.id, e)
            return Status.NOT_CONNECTED
        return Status.OK

    def _update_clients_settings(
        self,
        ui: dict[str, Any] | None = None,
        pluggable: SettingsMap | None = None,
    ) -> None:
        data: dict[str, Any] = {}
        if ui is not None:
            self._ui_settings.update(ui)
            data["monitorUISettings"] = dict(ui)
        if pluggable is not None:
            data["pluggableMonitorSettings"] = settings_to_dict(pluggable)
        self._fanout.broadcast(encode_settings_changed(data))

    # ---- Lifecycle ----

    async def start(self) -> Status:
        """Open the device stream, retrying on transient failure."""
        if self._disposed:
            logger.warning("Start on disposed monitor monitor_id=%s", self.id)
            return Status.NOT_CONNECTED

        if self._stream is not None and self._state == MonitorState.CONNECTED:
            self._update_clients_settings(ui={"connected": True, "serialPort": self.port.address})
            return Status.ALREADY_CONNECTED

        if self._connecting is not None:
            return await asyncio.shield(self._connecting)

        if not self.board.fqbn or not self.port.address or not self.port.protocol:
            self._update_clients_settings(ui={"connected": False})
            return Status.CONFIG_MISSING

        if self._upload_in_progress:
            self._update_clients_settings(ui={"connected": False, "serialPort": self.port.address})
            return Status.UPLOAD_IN_PROGRESS

        self._abort_connect = asyncio.Event()
        self._connecting = asyncio.ensure_future(self._connect())
        return await asyncio.shield(self._connecting)

    async def _connect(self) -> Status:
        self._state = MonitorState.CONNECTING
        logger.info(
            "Starting monitor monitor_id=%s address=%s protocol=%s",
            self.id,
            self.port.address,
            self.port.protocol,
        )
        try:
            try:
                await self._refresh_settings()
            except DaemonError as e:
                logger.error("Settings fetch failed monitor_id=%s error=%s", self.id, e)
                return self._connect_failed()

            request = MonitorRequest.open(
                self.board, self.port, selected_values(self._pluggable_settings)
            )
            for attempt in range(1, self._retry_policy.max_attempts + 1):
                if attempt > 1 and await self._wait_retry_delay():
                    break
                if self._abort_connect.is_set() or self._upload_in_progress:
                    break
                if await self._attempt_open(request, attempt):
                    if self._abort_connect.is_set() or self._upload_in_progress:
                        await self._discard_stream()
                        break
                    return self._connect_succeeded()

            if self._upload_in_progress:
                return self._connect_blocked_by_upload()
            return self._connect_failed()
        finally:
            self._connecting = None

    async def _wait_retry_delay(self) -> bool:
        """Sleep between attempts. Returns True if aborted meanwhile."""
        try:
            await asyncio.wait_for(self._abort_connect.wait(), timeout=self._retry_policy.delay)
        except TimeoutError:
            return False
        return True

    async def _attempt_open(self, request: MonitorRequest, attempt: int) -> bool:
        if self._stream is None:
            self._open_stream()
        stream = self._stream

        try:
            await stream.write(request)
        except DeviceStreamError as e:
            logger.warning(
                "Monitor open attempt failed monitor_id=%s attempt=%d/%d error=%s",
                self.id,
                attempt,
                self._retry_policy.max_attempts,
                e,
            )
            await self._discard_stream()
            return False

        # An error or close arrived before the write completed
        if self._stream is not stream:
            logger.warning(
                "Monitor stream closed during open monitor_id=%s attempt=%d/%d",
                self.id,
                attempt,
                self._retry_policy.max_attempts,
            )
            return False
        return True

    def _connect_succeeded(self) -> Status:
        self._state = MonitorState.CONNECTED
        self._start_message_handlers()
        logger.info(
            "Started monitor monitor_id=%s address=%s protocol=%s",
            self.id,
            self.port.address,
            self.port.protocol,
        )
        self._update_clients_settings(ui={"connected": True, "serialPort": self.port.address})
        return Status.OK

    def _connect_failed(self) -> Status:
        if self._state != MonitorState.DISPOSED:
            self._state = MonitorState.IDLE
        logger.warning(
            "Failed starting monitor monitor_id=%s address=%s protocol=%s",
            self.id,
            self.port.address,
            self.port.protocol,
        )
        self._update_clients_settings(ui={"connected": False})
        return Status.NOT_CONNECTED

    def _connect_blocked_by_upload(self) -> Status:
        if self._state != MonitorState.DISPOSED:
            self._state = MonitorState.IDLE
        logger.info("Monitor connect abandoned for upload monitor_id=%s", self.id)
        self._update_clients_settings(ui={"connected": False, "serialPort": self.port.address})
        return Status.UPLOAD_IN_PROGRESS

    async def pause(self) -> None:
        """Close the device stream, keeping batcher and observers armed.

        An in-flight connect is aborted and awaited first.
        """
        aborted = self._connecting is not None
        if aborted:
            self._abort_connect.set()
            with suppress(Exception):
                await asyncio.shield(self._connecting)

        stream = self._stream
        if stream is None:
            if not aborted:
                logger.warning("Monitor already stopped monitor_id=%s", self.id)
            return

        self._pausing = True
        try:
            await stream.end()
        except DeviceStreamError as e:
            logger.warning("Monitor close failed monitor_id=%s error=%s", self.id, e)
        finally:
            self._pausing = False

        if self._stream is stream:
            await self._discard_stream()

        logger.info(
            "Stopped monitor monitor_id=%s address=%s protocol=%s",
            self.id,
            self.port.address,
            self.port.protocol,
        )
        if self._state == MonitorState.CONNECTED:
            self._state = MonitorState.PAUSED
            self._update_clients_settings(ui={"connected": False})

    async def stop(self) -> None:
        """Abort any retry loop, close the stream and release the handlers."""
        self._abort_connect.set()
        try:
            await self.pause()
        finally:
            if self._connecting is not None:
                with suppress(Exception):
                    await asyncio.shield(self._connecting)
            await self._discard_stream()
            await self._stop_message_handlers()
            if self._state != MonitorState.DISPOSED:
                self._state = MonitorState.IDLE

    async def dispose(self) -> None:
        """Stop and release everything; fires ``on_dispose`` callbacks once."""
        if self._disposed:
            return
        self._disposed = True
        logger.info("Disposing monitor monitor_id=%s", self.id)

        self._clients_subscription.dispose()
        try:
            await self.stop()
        finally:
            self._batcher.clear()
            await self._fanout.close()
            self._state = MonitorState.DISPOSED

            callbacks, self._dispose_callbacks = self._dispose_callbacks, []
            for callback in callbacks:
                try:
                    callback()
                except Exception:
                    logger.exception("Dispose callback failed monitor_id=%s", self.id)

    # ---- Device stream ----

    async def send(self, message: str) -> Status:
        """Transmit observer text to the device."""
        stream = self._stream
        if stream is None or self._state != MonitorState.CONNECTED:
            return Status.NOT_CONNECTED

        try:
            await stream.write(MonitorRequest.transmit(message))
        except DeviceStreamError as e:
            logger.error("Monitor write failed monitor_id=%s error=%s", self.id, e)
            return Status.NOT_CONNECTED
        return Status.OK

    def _open_stream(self) -> None:
        stream = self._stream_factory()
        self._stream = stream
        self._reader_task = asyncio.create_task(self._read_loop(stream))

    def _detach_stream(self) -> asyncio.Task[None] | None:
        stream, self._stream = self._stream, None
        task, self._reader_task = self._reader_task, None
        if stream is not None:
            stream.cancel()
        return task

    async def _discard_stream(self) -> None:
        task = self._detach_stream()
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def _read_loop(self, stream: DeviceStreamPort) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            async for response in stream.responses():
                self._handle_response(response, decoder)
        except DeviceStreamError as e:
            logger.error("Monitor stream error monitor_id=%s error=%s", self.id, e)
        else:
            logger.info(
                "Monitor closed by daemon monitor_id=%s address=%s protocol=%s",
                self.id,
                self.port.address,
                self.port.protocol,
            )
        self._on_stream_closed(stream)

    def _handle_response(self, response: MonitorResponse, decoder: codecs.IncrementalDecoder) -> None:
        if response.error:
            logger.error("Monitor reported error monitor_id=%s error=%s", self.id, response.error)
            return
        if response.rx_data:
            text = decoder.decode(response.rx_data)
            if text:
                self._batcher.append(split_lines(text))

    def _on_stream_closed(self, stream: DeviceStreamPort) -> None:
        if stream is not self._stream:
            return
        self._detach_stream()
        if self._state == MonitorState.CONNECTED and not self._pausing:
            self._state = MonitorState.IDLE
            self._update_clients_settings(ui={"connected": False})

    # ---- Observer messages ----

    def _start_message_handlers(self) -> None:
        self._batcher.start()
        if self._command_subscription is None:
            self._command_subscription = self._fanout.on_command(self._handle_command)

    async def _stop_message_handlers(self) -> None:
        await self._batcher.stop()
        if self._command_subscription is not None:
            self._command_subscription.dispose()
            self._command_subscription = None

    async def _handle_command(self, command: ObserverCommand) -> None:
        if isinstance(command, Transmit):
            status = await self.send(command.text)
            if status != Status.OK:
                logger.warning("Dropped observer message monitor_id=%s status=%s", self.id, status)
        elif isinstance(command, ReconfigureSettings):
            await self.change_settings(command.update)

    async def _on_clients_changed(self, count: int) -> None:
        if count == 0:
            # Nobody is listening anymore
            await self.dispose()
            return
        self._fanout.broadcast(encode_settings_changed(self.settings_snapshot()))
