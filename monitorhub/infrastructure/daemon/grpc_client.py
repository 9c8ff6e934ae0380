"""gRPC daemon client - device streams and port settings over ``grpc.aio``.

The daemon's message schema is supplied by a :class:`MonitorCodec`
loaded from a dotted path, e.g. ``mypackage.codecs:ArduinoCliCodec``.
"""

import asyncio
import importlib
import logging
from collections.abc import AsyncIterator
from typing import Protocol

import grpc

from monitorhub.domain import (
    DeviceStreamError,
    MonitorRequest,
    MonitorResponse,
    MonitorSetting,
    SettingsMap,
    SettingsSourceError,
)

logger = logging.getLogger(__name__)

# Keepalive so both ends notice dead peers
CHANNEL_OPTIONS = [
    ("grpc.keepalive_time_ms", 20000),
    ("grpc.keepalive_timeout_ms", 5000),
]
SETTINGS_TIMEOUT = 10.0  # seconds


class MonitorCodec(Protocol):
    """Translates monitor frames to and from the daemon's wire format."""

    def encode_request(self, request: MonitorRequest) -> bytes: ...

    def decode_response(self, data: bytes) -> MonitorResponse: ...

    def encode_settings_request(self, protocol: str, fqbn: str) -> bytes: ...

    def decode_settings_response(self, data: bytes) -> list[MonitorSetting]: ...


def load_codec(path: str) -> MonitorCodec:
    """Instantiate a codec from ``module:attribute``."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Codec path must look like 'module:Class', got {path!r}")
    factory = getattr(importlib.import_module(module_name), attr)
    return factory()


def _describe(error: Exception) -> str:
    if isinstance(error, grpc.aio.AioRpcError):
        return f"{error.code().name}: {error.details()}"
    return str(error) or type(error).__name__


class GrpcDeviceStream:
    """Device stream over a bidirectional-streaming gRPC call."""

    def __init__(self, call: grpc.aio.StreamStreamCall) -> None:
        self._call = call

    async def write(self, request: MonitorRequest) -> None:
        try:
            await self._call.write(request)
        except (grpc.aio.AioRpcError, asyncio.InvalidStateError) as e:
            raise DeviceStreamError(_describe(e)) from e

    async def end(self) -> None:
        try:
            await self._call.done_writing()
            await self._call.code()
        except (grpc.aio.AioRpcError, asyncio.InvalidStateError) as e:
            raise DeviceStreamError(_describe(e)) from e

    def cancel(self) -> None:
        self._call.cancel()

    async def responses(self) -> AsyncIterator[MonitorResponse]:
        try:
            while True:
                response = await self._call.read()
                if response is grpc.aio.EOF:
                    return
                yield response
        except grpc.aio.AioRpcError as e:
            if e.code() == grpc.StatusCode.CANCELLED:
                return
            raise DeviceStreamError(_describe(e)) from e


class GrpcDaemonClient:
    """Connection to the upstream daemon.

    The channel is created lazily so it binds to the running event loop.
    """

    def __init__(
        self,
        address: str,
        codec: MonitorCodec,
        monitor_method: str,
        settings_method: str,
    ) -> None:
        self._address = address
        self._codec = codec
        self._monitor_method = monitor_method
        self._settings_method = settings_method
        self._channel: grpc.aio.Channel | None = None

    @property
    def channel(self) -> grpc.aio.Channel:
        if self._channel is None:
            logger.info("Opening daemon channel address=%s", self._address)
            self._channel = grpc.aio.insecure_channel(self._address, options=CHANNEL_OPTIONS)
        return self._channel

    def open_stream(self) -> GrpcDeviceStream:
        """Start a monitor call; usable as a device stream factory."""
        multicallable = self.channel.stream_stream(
            self._monitor_method,
            request_serializer=self._codec.encode_request,
            response_deserializer=self._codec.decode_response,
        )
        return GrpcDeviceStream(multicallable())

    async def port_settings(self, protocol: str, fqbn: str) -> SettingsMap:
        multicallable = self.channel.unary_unary(self._settings_method)
        try:
            data = await multicallable(
                self._codec.encode_settings_request(protocol, fqbn),
                timeout=SETTINGS_TIMEOUT,
            )
        except grpc.aio.AioRpcError as e:
            raise SettingsSourceError(_describe(e)) from e
        return {s.id: s for s in self._codec.decode_settings_response(data)}

    async def close(self) -> None:
        if self._channel is not None:
            await self._channel.close()
            self._channel = None
