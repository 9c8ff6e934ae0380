"""Frames exchanged with the upstream device stream."""

from dataclasses import dataclass, field
from enum import Enum

from .board import Board, Port


class RequestKind(str, Enum):
    OPEN = "open"
    TRANSMIT = "transmit"
    CONFIGURE = "configure"


@dataclass(frozen=True, slots=True)
class MonitorRequest:
    """Request written to the device stream.

    The first request on a stream opens the monitor; later ones transmit
    data to the device or change the port configuration.
    """

    kind: RequestKind
    fqbn: str | None = None
    address: str | None = None
    protocol: str | None = None
    configuration: dict[str, str] = field(default_factory=dict)
    tx_data: bytes = b""

    @classmethod
    def open(cls, board: Board, port: Port, configuration: dict[str, str]) -> "MonitorRequest":
        return cls(
            kind=RequestKind.OPEN,
            fqbn=board.fqbn,
            address=port.address,
            protocol=port.protocol,
            configuration=dict(configuration),
        )

    @classmethod
    def transmit(cls, text: str) -> "MonitorRequest":
        return cls(kind=RequestKind.TRANSMIT, tx_data=text.encode("utf-8"))

    @classmethod
    def configure(cls, configuration: dict[str, str]) -> "MonitorRequest":
        return cls(kind=RequestKind.CONFIGURE, configuration=dict(configuration))


@dataclass(frozen=True, slots=True)
class MonitorResponse:
    """Response read from the device stream."""

    rx_data: bytes = b""
    error: str = ""
