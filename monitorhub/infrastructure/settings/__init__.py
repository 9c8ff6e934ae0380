"""Settings infrastructure - sources and stores."""

from .static_source import StaticSettingsSource
from .stores import InMemorySettingsStore, YAMLSettingsStore

__all__ = [
    "StaticSettingsSource",
    "InMemorySettingsStore",
    "YAMLSettingsStore",
]
