"""Observer fanout - broadcasts to and routes commands from observers."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress

from monitorhub.domain import InvalidCommandError, MonitorId, ObserverCommand, decode_command

from ..ports.connection_port import ConnectionPort

logger = logging.getLogger(__name__)

CommandHandler = Callable[[ObserverCommand], Awaitable[None]]
ClientsChangedHandler = Callable[[int], Awaitable[None]]


class Subscription:
    """Handle returned by ``on_*`` registrations; ``dispose()`` detaches it."""

    def __init__(self, handlers: list, handler) -> None:
        self._handlers = handlers
        self._handler = handler

    @property
    def active(self) -> bool:
        return self._handler in self._handlers

    def dispose(self) -> None:
        with suppress(ValueError):
            self._handlers.remove(self._handler)


class ObserverFanout:
    """Tracks the observers of one monitor.

    Broadcasts are queued and delivered in order by a single dispatcher
    task. A failing observer is closed and removed without affecting the
    others or the broadcaster.
    """

    def __init__(self, monitor_id: MonitorId) -> None:
        self._monitor_id = monitor_id
        self._observers: set[ConnectionPort] = set()
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._dispatcher: asyncio.Task[None] | None = None
        self._command_handlers: list[CommandHandler] = []
        self._clients_handlers: list[ClientsChangedHandler] = []
        self._closed = False

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def has_observer(self, connection: ConnectionPort) -> bool:
        return connection in self._observers

    # ---- Membership ----

    async def add(self, connection: ConnectionPort) -> None:
        """Register an observer."""
        if self._closed:
            raise RuntimeError(f"Fanout closed monitor_id={self._monitor_id}")
        if connection in self._observers:
            return
        self._observers.add(connection)
        logger.info(
            "Observer added monitor_id=%s observers=%d", self._monitor_id, len(self._observers)
        )
        await self._notify_clients_changed()

    async def remove(self, connection: ConnectionPort) -> None:
        """Unregister an observer. Silent if not registered."""
        if connection not in self._observers:
            return
        self._observers.discard(connection)
        logger.info(
            "Observer removed monitor_id=%s observers=%d", self._monitor_id, len(self._observers)
        )
        await self._notify_clients_changed()

    # ---- Outbound ----

    def broadcast(self, payload: str) -> None:
        """Queue a payload for every observer."""
        if self._closed:
            return
        self._queue.put_nowait(payload)
        if self._dispatcher is None or self._dispatcher.done():
            self._dispatcher = asyncio.create_task(self._dispatch_loop())

    async def drain(self) -> None:
        """Wait until every queued payload has been delivered."""
        if self._dispatcher is None or self._dispatcher.done():
            return
        await self._queue.join()

    async def _dispatch_loop(self) -> None:
        while not self._closed:
            payload = await self._queue.get()
            try:
                await self._send_to_all(payload)
            except Exception:
                logger.exception("Broadcast failed monitor_id=%s", self._monitor_id)
            finally:
                self._queue.task_done()

    async def _send_to_all(self, payload: str) -> int:
        observers = list(self._observers)
        if not observers:
            return 0

        results = await asyncio.gather(
            *(observer.send_text(payload) for observer in observers),
            return_exceptions=True,
        )

        sent = 0
        for observer, result in zip(observers, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Observer send failed monitor_id=%s error=%s", self._monitor_id, result
                )
                await self._drop(observer)
            else:
                sent += 1
        return sent

    async def _drop(self, observer: ConnectionPort) -> None:
        with suppress(Exception):
            await observer.close(code=1011)
        await self.remove(observer)

    # ---- Inbound ----

    async def handle_incoming(self, raw: str) -> None:
        """Decode an observer frame and dispatch it to command handlers."""
        try:
            command = decode_command(raw)
        except InvalidCommandError as e:
            logger.warning("Dropped observer frame monitor_id=%s reason=%s", self._monitor_id, e)
            return

        if not self._command_handlers:
            logger.debug("No command handler monitor_id=%s command=%r", self._monitor_id, command)
            return

        for handler in list(self._command_handlers):
            try:
                await handler(command)
            except Exception:
                logger.exception(
                    "Command handler failed monitor_id=%s command=%r", self._monitor_id, command
                )

    # ---- Subscriptions ----

    def on_command(self, handler: CommandHandler) -> Subscription:
        self._command_handlers.append(handler)
        return Subscription(self._command_handlers, handler)

    def on_clients_changed(self, handler: ClientsChangedHandler) -> Subscription:
        self._clients_handlers.append(handler)
        return Subscription(self._clients_handlers, handler)

    async def _notify_clients_changed(self) -> None:
        count = len(self._observers)
        for handler in list(self._clients_handlers):
            await handler(count)

    # ---- Lifecycle ----

    async def close(self) -> None:
        """Close every observer and stop the dispatcher."""
        if self._closed:
            return
        self._closed = True
        self._command_handlers.clear()
        self._clients_handlers.clear()

        observers, self._observers = list(self._observers), set()
        for observer in observers:
            with suppress(Exception):
                await observer.close(code=1000)

        # Undelivered payloads are discarded
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()

        dispatcher, self._dispatcher = self._dispatcher, None
        if dispatcher is not None and dispatcher is not asyncio.current_task():
            dispatcher.cancel()
            with suppress(asyncio.CancelledError):
                await dispatcher
        logger.info("Fanout closed monitor_id=%s", self._monitor_id)
