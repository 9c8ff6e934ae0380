"""Status codes returned by monitor session operations."""

from enum import Enum


class Status(str, Enum):
    """Outcome of a monitor operation, serialized as its name."""

    OK = "OK"
    ALREADY_CONNECTED = "ALREADY_CONNECTED"
    CONFIG_MISSING = "CONFIG_MISSING"
    UPLOAD_IN_PROGRESS = "UPLOAD_IN_PROGRESS"
    NOT_CONNECTED = "NOT_CONNECTED"


class MonitorState(str, Enum):
    """Lifecycle state of a monitor session."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    PAUSED = "paused"
    DISPOSED = "disposed"
