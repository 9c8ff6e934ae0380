"""Domain value objects - immutable data structures."""

from .board import Board, Port
from .commands import (
    ClientCommand,
    InvalidCommandError,
    MiddlewareCommand,
    ObserverCommand,
    ReconfigureSettings,
    Transmit,
    decode_command,
    encode_settings_changed,
)
from .frames import MonitorRequest, MonitorResponse, RequestKind
from .monitor_id import MonitorId
from .retry_policy import DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_DELAY, RetryPolicy
from .status import MonitorState, Status

__all__ = [
    "Board",
    "Port",
    "MonitorId",
    "Status",
    "MonitorState",
    "RetryPolicy",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_RETRY_DELAY",
    "MonitorRequest",
    "MonitorResponse",
    "RequestKind",
    "ClientCommand",
    "MiddlewareCommand",
    "ObserverCommand",
    "Transmit",
    "ReconfigureSettings",
    "InvalidCommandError",
    "decode_command",
    "encode_settings_changed",
]
