"""Pure domain layer - no infrastructure dependencies."""

# Entities
from .entities import (
    DEFAULT_SEPARATOR,
    MAX_CHARACTERS,
    Line,
    LineBuffer,
    MonitorSetting,
    SettingsMap,
    selected_values,
    settings_to_dict,
)

# Ports
from .ports import (
    DaemonError,
    DeviceStreamError,
    DeviceStreamFactory,
    DeviceStreamPort,
    MonitorRepository,
    MonitorSettingsSource,
    SettingsSourceError,
    SettingsStore,
)

# Services
from .services import ReconcileResult, SettingsReconciler, split_lines

# Value Objects
from .values import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    Board,
    ClientCommand,
    InvalidCommandError,
    MiddlewareCommand,
    MonitorId,
    MonitorRequest,
    MonitorResponse,
    MonitorState,
    ObserverCommand,
    Port,
    ReconfigureSettings,
    RequestKind,
    RetryPolicy,
    Status,
    Transmit,
    decode_command,
    encode_settings_changed,
)

__all__ = [
    # Values
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
    # Entities
    "Line",
    "LineBuffer",
    "MAX_CHARACTERS",
    "DEFAULT_SEPARATOR",
    "MonitorSetting",
    "SettingsMap",
    "selected_values",
    "settings_to_dict",
    # Services
    "SettingsReconciler",
    "ReconcileResult",
    "split_lines",
    # Ports
    "DaemonError",
    "DeviceStreamError",
    "DeviceStreamPort",
    "DeviceStreamFactory",
    "MonitorRepository",
    "MonitorSettingsSource",
    "SettingsSourceError",
    "SettingsStore",
]
