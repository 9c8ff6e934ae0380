"""Shared test fixtures and configuration."""

import asyncio
import json
from collections.abc import Callable

import pytest

from monitorhub.application.services import (
    MonitorManager,
    MonitorService,
    MonitorSettingsService,
    ObserverFanout,
)
from monitorhub.domain import (
    Board,
    DeviceStreamError,
    MonitorId,
    MonitorRequest,
    MonitorResponse,
    MonitorSetting,
    Port,
    RetryPolicy,
    SettingsMap,
    SettingsSourceError,
)
from monitorhub.infrastructure.repositories import InMemoryMonitorRepository
from monitorhub.infrastructure.settings import InMemorySettingsStore

# ============= Domain Fixtures =============


@pytest.fixture
def board():
    """Arduino Uno board."""
    return Board(fqbn="arduino:avr:uno", name="Arduino Uno")


@pytest.fixture
def port():
    """Serial port."""
    return Port(address="/dev/ttyACM0", protocol="serial")


@pytest.fixture
def monitor_id(board, port):
    """Monitor ID for the sample board/port."""
    return MonitorId.for_target(board, port)


@pytest.fixture
def baudrate_setting():
    """Enumerable baudrate setting."""
    return MonitorSetting(
        id="baudrate",
        label="Baudrate",
        allowed_values=("9600", "115200"),
        selected_value="9600",
    )


@pytest.fixture
def parity_setting():
    """Enumerable parity setting."""
    return MonitorSetting(
        id="parity",
        label="Parity",
        allowed_values=("none", "even", "odd"),
        selected_value="none",
    )


@pytest.fixture
def default_settings(baudrate_setting, parity_setting) -> SettingsMap:
    """Daemon defaults for the serial protocol."""
    return {"baudrate": baudrate_setting, "parity": parity_setting}


@pytest.fixture
def fast_retry():
    """Retry policy with no delay between attempts."""
    return RetryPolicy(max_attempts=10, delay=0)


# ============= Mock Fixtures =============


class FakeDeviceStream:
    """Fake device stream for testing."""

    def __init__(self, fail_writes: int = 0):
        self.requests: list[MonitorRequest] = []
        self.fail_writes = fail_writes
        self.ended = False
        self.cancelled = False
        self._queue: asyncio.Queue = asyncio.Queue()

    async def write(self, request: MonitorRequest) -> None:
        if self.ended or self.cancelled:
            raise DeviceStreamError("Stream is closed")
        if self.fail_writes > 0:
            self.fail_writes -= 1
            raise DeviceStreamError("Port busy")
        self.requests.append(request)

    async def end(self) -> None:
        self.ended = True
        self._queue.put_nowait(None)

    def cancel(self) -> None:
        self.cancelled = True
        self._queue.put_nowait(None)

    async def responses(self):
        while True:
            item = await self._queue.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    # Test helpers
    def push(self, data: bytes) -> None:
        """Simulate bytes arriving from the device."""
        self._queue.put_nowait(MonitorResponse(rx_data=data))

    def push_error(self, message: str = "Device unplugged") -> None:
        """Simulate the stream terminating with an error."""
        self._queue.put_nowait(DeviceStreamError(message))

    def close_from_daemon(self) -> None:
        """Simulate the daemon ending the stream."""
        self._queue.put_nowait(None)

    @property
    def is_active(self) -> bool:
        return not (self.ended or self.cancelled)


class FakeStreamFactory:
    """Creates fake streams; the first ``failing_streams`` reject their open."""

    def __init__(self, failing_streams: int = 0):
        self.failing_streams = failing_streams
        self.streams: list[FakeDeviceStream] = []

    def __call__(self) -> FakeDeviceStream:
        fail = len(self.streams) < self.failing_streams
        stream = FakeDeviceStream(fail_writes=1 if fail else 0)
        self.streams.append(stream)
        return stream

    @property
    def last(self) -> FakeDeviceStream:
        return self.streams[-1]


@pytest.fixture
def stream_factory():
    """Factory whose streams always open."""
    return FakeStreamFactory()


class FakeSettingsSource:
    """Fake daemon settings source."""

    def __init__(self, settings: SettingsMap, fail: bool = False):
        self.settings = dict(settings)
        self.fail = fail
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def port_settings(self, protocol: str, fqbn: str) -> SettingsMap:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise SettingsSourceError("Daemon unavailable")
        return dict(self.settings)


@pytest.fixture
def settings_source(default_settings):
    """Settings source serving the default serial settings."""
    return FakeSettingsSource(default_settings)


@pytest.fixture
def settings_store():
    """Empty in-memory settings store."""
    return InMemorySettingsStore()


@pytest.fixture
def settings_service(settings_source, settings_store):
    """Settings service over the fake source and in-memory store."""
    return MonitorSettingsService(settings_source, settings_store)


class MockConnection:
    """Mock connection implementing ConnectionPort."""

    def __init__(self, fail_send: bool = False):
        self.sent: list[str] = []
        self.closed_code: int | None = None
        self.fail_send = fail_send
        self._incoming: asyncio.Queue[str] = asyncio.Queue()

    async def send_text(self, payload: str) -> None:
        if self.fail_send:
            raise ConnectionError("Observer gone")
        self.sent.append(payload)

    async def receive_text(self) -> str:
        return await self._incoming.get()

    async def close(self, code: int = 1000) -> None:
        self.closed_code = code

    def is_connected(self) -> bool:
        return self.closed_code is None

    # Test helpers
    def messages(self) -> list:
        return [json.loads(payload) for payload in self.sent]

    def batches(self) -> list[list[str]]:
        """Output batches received."""
        return [m for m in self.messages() if isinstance(m, list)]

    def settings_updates(self) -> list[dict]:
        """Data of every settings notification received."""
        return [m["data"] for m in self.messages() if isinstance(m, dict)]


@pytest.fixture
def mock_connection():
    """Mock observer connection."""
    return MockConnection()


@pytest.fixture
def eventually():
    """Poll until a condition holds, yielding to the event loop."""

    async def wait(condition: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not condition():
            if loop.time() > deadline:
                raise AssertionError("Condition not met in time")
            await asyncio.sleep(0.001)

    return wait


# ============= Service Fixtures =============


@pytest.fixture
def fanout(monitor_id):
    """Observer fanout for the sample monitor."""
    return ObserverFanout(monitor_id)


@pytest.fixture
def make_monitor(stream_factory, settings_service, fast_retry):
    """Build monitor services; the flush timer is slow so tests flush by hand."""

    def make(
        board: Board,
        port: Port,
        *,
        retry_policy: RetryPolicy | None = None,
        factory: FakeStreamFactory | None = None,
    ) -> MonitorService:
        return MonitorService(
            MonitorId.for_target(board, port),
            board,
            port,
            stream_factory=factory or stream_factory,
            settings_service=settings_service,
            retry_policy=retry_policy or fast_retry,
            flush_interval=60.0,
        )

    return make


@pytest.fixture
async def monitor(make_monitor, board, port):
    """Monitor service for the sample board/port, disposed after the test."""
    service = make_monitor(board, port)
    yield service
    await service.dispose()


# ============= Repository Fixtures =============


@pytest.fixture
def monitor_repository():
    """Empty in-memory monitor repository."""
    return InMemoryMonitorRepository()


@pytest.fixture
async def monitor_manager(monitor_repository, make_monitor):
    """Monitor manager over the fake backend."""

    def factory(monitor_id: MonitorId, board: Board, port: Port) -> MonitorService:
        return make_monitor(board, port)

    manager = MonitorManager(monitor_repository, factory)
    yield manager
    await manager.stop()
