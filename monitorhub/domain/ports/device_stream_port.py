"""Device stream port - interface to the upstream monitor daemon."""

from collections.abc import AsyncIterator, Callable
from typing import Protocol

from ..values import MonitorRequest, MonitorResponse


class DaemonError(Exception):
    """Base class for failures talking to the upstream daemon."""


class DeviceStreamError(DaemonError):
    """The device stream failed (write rejected, stream reset, ...)."""


class DeviceStreamPort(Protocol):
    """Bidirectional stream to a running pluggable monitor.

    The only source of device-originated bytes and the only sink for
    transmit frames.
    """

    async def write(self, request: MonitorRequest) -> None:
        """Write a request; returns once the write is acknowledged.

        Raises:
            DeviceStreamError: The write failed.
        """
        ...

    async def end(self) -> None:
        """Half-close the stream and wait for the daemon to close its side."""
        ...

    def cancel(self) -> None:
        """Tear the stream down immediately."""
        ...

    def responses(self) -> AsyncIterator[MonitorResponse]:
        """Iterate responses until the daemon closes the stream.

        Raises:
            DeviceStreamError: The stream terminated with an error.
        """
        ...


# Factory type for creating device streams
DeviceStreamFactory = Callable[[], DeviceStreamPort]
