"""Dependency container - holds all wired dependencies."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from monitorhub.application.services import MonitorManager, MonitorSettingsService
from monitorhub.config import Config
from monitorhub.domain import DeviceStreamFactory, MonitorRepository, SettingsStore


@dataclass(frozen=True)
class Container:
    """Immutable dependency container.

    All dependencies are wired at startup and cannot be modified.
    """

    # Services
    monitor_manager: MonitorManager
    settings_service: MonitorSettingsService

    # Repositories
    monitor_repository: MonitorRepository
    settings_store: SettingsStore

    # Factories
    stream_factory: DeviceStreamFactory

    # Configuration
    config: Config

    # Released on shutdown (daemon channels, ...)
    closers: tuple[Callable[[], Awaitable[None]], ...] = field(default_factory=tuple)

    async def close(self) -> None:
        """Dispose every monitor and release backend resources."""
        await self.monitor_manager.stop()
        for closer in self.closers:
            await closer()
