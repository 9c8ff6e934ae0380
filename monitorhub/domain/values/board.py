"""Board and port value objects."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Board:
    """Target board, identified by its fully qualified board name."""

    fqbn: str | None
    name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Board":
        return cls(fqbn=data.get("fqbn") or None, name=data.get("name", ""))


@dataclass(frozen=True, slots=True)
class Port:
    """Port the board is attached to (e.g. ``/dev/ttyACM0`` over ``serial``)."""

    address: str | None
    protocol: str | None
    label: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Port":
        return cls(
            address=data.get("address") or None,
            protocol=data.get("protocol") or None,
            label=data.get("label", ""),
        )
