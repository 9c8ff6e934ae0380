"""Infrastructure repositories - data storage implementations."""

from .in_memory_monitor import InMemoryMonitorRepository

__all__ = [
    "InMemoryMonitorRepository",
]
