"""Composition root - the ONLY place where dependencies are wired."""

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from monitorhub.application.services import MonitorManager, MonitorService, MonitorSettingsService
from monitorhub.config import Config, DaemonConfig, MonitorConfig, load_config
from monitorhub.container import Container
from monitorhub.domain import (
    Board,
    DeviceStreamFactory,
    MonitorId,
    MonitorSettingsSource,
    Port,
    SettingsStore,
)
from monitorhub.infrastructure.daemon import GrpcDaemonClient, LoopbackDeviceStream, load_codec
from monitorhub.infrastructure.repositories import InMemoryMonitorRepository
from monitorhub.infrastructure.settings import (
    InMemorySettingsStore,
    StaticSettingsSource,
    YAMLSettingsStore,
)

logger = logging.getLogger(__name__)

Closer = Callable[[], Awaitable[None]]


def create_backend(
    daemon: DaemonConfig,
    config: Config,
) -> tuple[DeviceStreamFactory, MonitorSettingsSource, tuple[Closer, ...]]:
    """Create the device stream factory and settings source for a backend.

    Returns:
        (stream factory, settings source, shutdown hooks)
    """
    if daemon.backend == "grpc":
        client = GrpcDaemonClient(
            address=daemon.address,
            codec=load_codec(daemon.codec),
            monitor_method=daemon.monitor_method,
            settings_method=daemon.settings_method,
        )
        logger.info("Using grpc daemon backend address=%s", daemon.address)
        return client.open_stream, client, (client.close,)

    logger.info("Using loopback daemon backend")
    return LoopbackDeviceStream, StaticSettingsSource(config.default_settings()), ()


def create_settings_store(monitor: MonitorConfig) -> SettingsStore:
    if monitor.settings_file:
        return YAMLSettingsStore(Path(monitor.settings_file).expanduser())
    return InMemorySettingsStore()


def create_container(
    config_path: Path | str = "config.yaml",
    *,
    config: Config | None = None,
    stream_factory: DeviceStreamFactory | None = None,
    settings_source: MonitorSettingsSource | None = None,
) -> Container:
    """Create the dependency container with all wired dependencies.

    This is the composition root - the single place where all
    dependencies are created and wired together.

    Args:
        config_path: Path to config file (ignored when ``config`` is given).
        config: Already loaded configuration.
        stream_factory: Override the backend's device stream factory.
        settings_source: Override the backend's settings source.

    Returns:
        Fully wired dependency container.
    """
    config = config or load_config(config_path)

    backend_factory, backend_source, closers = create_backend(config.daemon, config)
    stream_factory = stream_factory or backend_factory
    settings_source = settings_source or backend_source

    settings_store = create_settings_store(config.monitor)
    settings_service = MonitorSettingsService(settings_source, settings_store)
    retry_policy = config.monitor.retry_policy()

    def monitor_factory(monitor_id: MonitorId, board: Board, port: Port) -> MonitorService:
        return MonitorService(
            monitor_id,
            board,
            port,
            stream_factory=stream_factory,
            settings_service=settings_service,
            retry_policy=retry_policy,
            flush_interval=config.monitor.flush_interval,
        )

    monitor_repository = InMemoryMonitorRepository()
    monitor_manager = MonitorManager(monitor_repository, monitor_factory)

    return Container(
        monitor_manager=monitor_manager,
        settings_service=settings_service,
        monitor_repository=monitor_repository,
        settings_store=settings_store,
        stream_factory=stream_factory,
        config=config,
        closers=closers,
    )
