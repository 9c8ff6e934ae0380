"""Monitor identifier value object."""

import re
from dataclasses import dataclass

from .board import Board, Port

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.:-]")


@dataclass(frozen=True, slots=True)
class MonitorId:
    """Identifies the monitor for one board/port/protocol triple.

    The value is safe to embed in a URL path segment.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("MonitorId cannot be empty")
        if _UNSAFE_CHARS.search(self.value):
            raise ValueError(f"MonitorId contains invalid characters: {self.value!r}")

    @classmethod
    def for_target(cls, board: Board, port: Port) -> "MonitorId":
        parts = (board.fqbn or "none", port.address or "none", port.protocol or "none")
        return cls("-".join(_UNSAFE_CHARS.sub("_", p) for p in parts))

    def __str__(self) -> str:
        return self.value
