"""Application services - use case implementations."""

from .message_batcher import FLUSH_INTERVAL, MessageBatcher
from .monitor_manager import MonitorFactory, MonitorManager
from .monitor_service import MonitorService
from .observer_fanout import ObserverFanout, Subscription
from .settings_service import MonitorSettingsService, settings_key

__all__ = [
    "MessageBatcher",
    "FLUSH_INTERVAL",
    "MonitorFactory",
    "MonitorManager",
    "MonitorService",
    "ObserverFanout",
    "Subscription",
    "MonitorSettingsService",
    "settings_key",
]
