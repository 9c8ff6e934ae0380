"""Loopback device stream - an in-process echo device."""

import asyncio
from collections.abc import AsyncIterator

from monitorhub.domain import DeviceStreamError, MonitorRequest, MonitorResponse, RequestKind


class LoopbackDeviceStream:
    """Device stream that echoes transmitted data back as received data.

    Useful for running the server without a daemon and for tests.
    """

    def __init__(self) -> None:
        self._responses: asyncio.Queue[MonitorResponse | None] = asyncio.Queue()
        self._opened = False
        self._writable = True
        self._closed = asyncio.Event()
        self.configuration: dict[str, str] = {}

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed.is_set()

    async def write(self, request: MonitorRequest) -> None:
        if not self._writable:
            raise DeviceStreamError("Stream is closed")

        if request.kind == RequestKind.OPEN:
            if self._opened:
                raise DeviceStreamError("Monitor already open")
            self._opened = True
            self.configuration = dict(request.configuration)
            return

        if not self._opened:
            raise DeviceStreamError("Monitor not open")

        if request.kind == RequestKind.TRANSMIT:
            self._responses.put_nowait(MonitorResponse(rx_data=request.tx_data))
        elif request.kind == RequestKind.CONFIGURE:
            self.configuration.update(request.configuration)

    async def end(self) -> None:
        if self._closed.is_set():
            return
        self._writable = False
        self._responses.put_nowait(None)
        await self._closed.wait()

    def cancel(self) -> None:
        self._writable = False
        if not self._closed.is_set():
            self._responses.put_nowait(None)
        self._closed.set()

    async def responses(self) -> AsyncIterator[MonitorResponse]:
        try:
            while True:
                response = await self._responses.get()
                if response is None:
                    return
                yield response
        finally:
            self._closed.set()
